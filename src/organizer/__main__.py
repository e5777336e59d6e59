"""Main entry point for the organizer CLI.

Usage:
    python -m organizer --help
"""

from organizer.cli import main

if __name__ == "__main__":
    main()
