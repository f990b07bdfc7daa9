from arith.cli import main

main()
