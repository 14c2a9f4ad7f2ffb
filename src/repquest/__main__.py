"""Main entry point for the repquest package."""

from repquest.cli import main

if __name__ == "__main__":
    main()
