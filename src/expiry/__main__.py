from expiry.cli.app import main

main()
