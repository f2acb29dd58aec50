from switchboard.main import main

main()
