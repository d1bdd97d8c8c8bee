"""Run the API server: ``python -m followups``."""
from __future__ import annotations

import argparse

import uvicorn

from . import __version__
from .config import get_settings


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(prog="followups", description="FollowUps API server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--version", action="store_true", help="print the version and exit")
    args = parser.parse_args()

    if args.version:
        print(f"Version:\t{__version__}")
        return

    uvicorn.run("followups.main:app", host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
