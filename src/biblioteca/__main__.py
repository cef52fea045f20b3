"""Main entry point for the biblioteca package."""

from biblioteca.cli import main

if __name__ == "__main__":
    main()
