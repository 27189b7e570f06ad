from sigilscope.cli import main

main()
