from s9s.cli.main import main

main()
