"""Command line entry point: ``python -m fsbridge`` / ``fsbridge``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Any

from fsbridge.app import BridgeApp
from fsbridge.config import BridgeConfig
from fsbridge.exceptions import BridgeConfigError, SourceUnavailableError

_LOG = logging.getLogger("fsbridge")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fsbridge",
        description="Serve live flight simulator telemetry as JSON over HTTP.",
    )
    parser.add_argument("--host", help="Listening address (default: localhost).")
    parser.add_argument("--port", type=int, help="Listening port (default: 5000).")
    parser.add_argument("--app-name", help="Application name announced to the simulator.")
    parser.add_argument(
        "--retry-interval",
        type=float,
        help="Seconds between connection attempts (default: 5).",
    )
    parser.add_argument(
        "--unified-empty-response",
        action="store_true",
        default=None,
        help="Use the snapshot field names for the no-data response.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    candidates = {
        "host": args.host,
        "port": args.port,
        "app_name": args.app_name,
        "retry_interval": args.retry_interval,
        "unified_empty_response": args.unified_empty_response,
    }
    return {key: value for key, value in candidates.items() if value is not None}


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = BridgeConfig.from_env(**_overrides(args))
    except BridgeConfigError as exc:
        print(f"fsbridge: invalid configuration: {exc}", file=sys.stderr)
        return 2

    # Imported here so the SDK is only required when talking to a real simulator.
    from fsbridge._simconnect import SimConnectSource

    try:
        source = SimConnectSource()
    except SourceUnavailableError as exc:
        print(f"fsbridge: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(BridgeApp(source, config).run())
    except KeyboardInterrupt:
        _LOG.info("Interrupted, shutting down")
    except OSError as exc:
        print(f"fsbridge: cannot listen on {config.url}: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
