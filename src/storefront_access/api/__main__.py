"""
storefront_access.api.__main__

Entrypoint: `python -m storefront_access.api` or the `storefront-access` script.
Host/port default to `SFA_API_HOST`/`SFA_API_PORT` and can be overridden on the
command line.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from storefront_access.api.app import create_app
from storefront_access.settings import get_settings


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="storefront-access")
    parser.add_argument("--host", default=None, help="bind address (default: settings.api_host)")
    parser.add_argument("--port", type=int, default=None, help="bind port (default: settings.api_port)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_config=None,  # logging is configured by create_app (structlog)
    )


if __name__ == "__main__":
    main()
