"""Module entrypoint for `python -m wirechat.client`."""

from __future__ import annotations

import asyncio
import sys

from wirechat.client.app import main


def main_entry() -> None:
    try:
        raise SystemExit(asyncio.run(main(sys.argv)))
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    main_entry()
