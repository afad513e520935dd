"""Entry point for the orglsp server."""

import sys

from orglsp.cli import run


def main() -> None:
    """Run the server with command-line arguments."""
    sys.exit(run())


if __name__ == "__main__":
    main()
