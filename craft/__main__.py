from craft.cli.app import main

main()
