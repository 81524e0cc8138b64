from morphosphere.cli import main

main()
