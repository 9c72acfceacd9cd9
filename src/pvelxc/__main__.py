"""Allow running the CLI with ``python -m pvelxc``."""

from pvelxc.cli.main import main


if __name__ == "__main__":
    main()
