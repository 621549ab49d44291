"""Entry point for ``python -m cidata``."""

from cidata.cli.main import main


if __name__ == "__main__":
    main()
