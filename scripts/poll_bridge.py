#!/usr/bin/env python3
"""Poll a running fsbridge endpoint and print each snapshot.

Useful to check a bridge end to end: prints one line per poll and
highlights when the feed goes stale (same payload as the previous poll)
or the bridge still serves the no-data body.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from typing import Any

import aiohttp

_LOG = logging.getLogger("poll_bridge")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Poll an fsbridge HTTP endpoint.")
    parser.add_argument("--url", default="http://localhost:5000/", help="Bridge URL.")
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds between polls.")
    parser.add_argument("--count", type=int, default=0, help="Number of polls (0 = until Ctrl+C).")
    parser.add_argument("--json", action="store_true", help="Pretty-print each payload.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _describe(payload: dict[str, Any]) -> str:
    if "timestamp" not in payload:
        return "no data yet"
    return (
        f"{payload.get('Title', '')!r} lat={payload.get('PlaneLatitude')} lon={payload.get('PlaneLongitude')} "
        f"alt={payload.get('PlaneAltitude')}ft hdg={payload.get('PlaneHeadingDegreesMagnetic')} "
        f"tas={payload.get('AirspeedTrue')}kt vs={payload.get('VerticalSpeed')}fpm"
    )


async def _poll(args: argparse.Namespace) -> int:
    previous: dict[str, Any] | None = None
    polls = 0
    async with aiohttp.ClientSession() as session:
        while args.count <= 0 or polls < args.count:
            polls += 1
            try:
                async with session.get(args.url) as resp:
                    if resp.status != 200:
                        print(f"[poll] HTTP {resp.status}", file=sys.stderr)
                        return 1
                    payload = await resp.json()
            except aiohttp.ClientError as exc:
                print(f"[poll] request failed: {exc}", file=sys.stderr)
                return 2

            ts_text = time.strftime("%H:%M:%S")
            snapshot = {k: v for k, v in payload.items() if k != "timestamp"}
            stale = previous is not None and snapshot == previous
            previous = snapshot
            print(f"[poll] {ts_text} {_describe(payload)}{' (unchanged)' if stale else ''}")
            if args.json:
                print(json.dumps(payload, indent=2, ensure_ascii=False))
            _LOG.debug("raw payload %s", payload)
            await asyncio.sleep(args.interval)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_poll(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(_main())
