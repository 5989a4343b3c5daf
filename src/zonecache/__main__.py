from zonecache.app import main

main()
