from lineshell.shell import main

main()
