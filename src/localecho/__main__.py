from localecho.cli import main

main()
