# Service layer for the SwitchBoard control panel
# - state_store:       per-service state table + change notifications
# - status_poller:     periodic status refresh from the backend
# - toggle_controller: optimistic toggle with rollback on failure
# - sync_engine:       composition root consumed by the panel page
# - backend_client:    httpx client for the docker status / toggle endpoints
