from __future__ import annotations

import argparse
import logging
import sys

from nicegui import app as ng_app
from nicegui import ui

from switchboard.api import register_api
from switchboard.common.logging_config import LEVEL_NAMES, configure_logging, level_from_name
from switchboard.config import FileConfigSource
from switchboard.constants import CONFIG_PATH, LOG_LEVEL, SERVER_HOST, SERVER_PORT
from switchboard.errors import ConfigError
from switchboard.pages.panel import PanelPage
from switchboard.services.backend_client import BackendClient
from switchboard.services.sync_engine import SyncEngine

# ------------------------ Global state ------------------------

# One backend client serves as config, status and toggle collaborator
client = BackendClient(FileConfigSource(CONFIG_PATH))
engine = SyncEngine(status_source=client, toggle_requester=client)
panel_page = PanelPage(engine)

register_api(ng_app, engine, client)


@ui.page("/")
def index() -> None:
    panel_page.build()


async def _app_startup() -> None:
    try:
        await engine.initialize(client)
    except ConfigError as e:
        # Panel still serves; header shows ERROR and no polling runs
        logging.error("SwitchBoard not initialized: %s", e)


async def _app_shutdown() -> None:
    await engine.shutdown()
    await client.aclose()


ng_app.on_startup(_app_startup)
ng_app.on_shutdown(_app_shutdown)


def _resolve_log_level(args: argparse.Namespace) -> int:
    # explicit --log-level > -v/-q > env default from constants
    if args.log_level:
        return level_from_name(args.log_level)
    if args.verbose >= 3:
        return level_from_name("TRACE")
    if args.verbose == 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    return LOG_LEVEL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SwitchBoard service control panel")
    parser.add_argument("--host", default=SERVER_HOST, help="Webserver bind host")
    parser.add_argument("--port", type=int, default=SERVER_PORT, help="Webserver bind port")
    parser.add_argument(
        "-c", "--config", default=CONFIG_PATH, help="Panel configuration file (JSON)"
    )
    parser.add_argument("--log-level", choices=LEVEL_NAMES, help="Set log level")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Enable WARNING logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args, _ = build_parser().parse_known_args(argv)

    client.config_source = FileConfigSource(args.config)
    configure_logging(_resolve_log_level(args))
    logging.info(f"Webserver bind: host={args.host} port={args.port}")
    logging.info(f"Panel configuration: {args.config}")

    ui.run(
        title="SwitchBoard",
        host=args.host,
        port=int(args.port),
        reload=False,
        show=False,
        loop="uvloop" if sys.platform != "win32" else "asyncio",
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
