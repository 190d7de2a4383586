from rewards_api.server import main

main()
