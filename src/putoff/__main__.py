from putoff.cli import main

main()
