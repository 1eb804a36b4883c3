from pageaudit import main

main()
