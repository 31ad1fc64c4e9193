"""Allow ``python -m specdriven``."""

from specdriven.cli import main

if __name__ == "__main__":
    main()
