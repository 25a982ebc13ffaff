import sys

from seed_playlist.cli import main

if __name__ == "__main__":
    sys.exit(main())
