"""Module entry-point so ``python -m scanomatic`` matches the console script."""

from scanomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
