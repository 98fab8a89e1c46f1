"""Module wrapper so running ``python -m scanomatic.cli`` matches the console script."""

from scanomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
