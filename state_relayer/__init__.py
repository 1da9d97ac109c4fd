"""DEX, vault and master-node state relayer."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the state-relayer script."""
    import sys

    from state_relayer.cli import main

    raise SystemExit(main(sys.argv[1:]))
