from slidecue.app import main

main()
