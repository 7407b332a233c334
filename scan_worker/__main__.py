from scan_worker.main import main

main()
