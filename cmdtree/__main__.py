from cmdtree.cli import main

main()
