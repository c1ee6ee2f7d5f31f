"""Command-line entry point of the trading system."""

from __future__ import annotations

import argparse
from typing import Sequence


def main(argv: Sequence[str] | None = None) -> int:
    """Start the trading system and return the exit status."""
    parser = argparse.ArgumentParser(prog="perpdesk", description="Perpetual trading system.")
    parser.parse_args(argv)
    print("Trading system starting...")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())