from textsaver.serve import main

main()
