from feed_ingestor.cli import main

main()
