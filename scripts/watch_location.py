#!/usr/bin/env python3
"""Follow the tracking service from a terminal.

Prints the rendered tracker view every time the state changes: once the
initial HTTP fetch (or the live snapshot) resolves, and again for every
live location update.

Configuration is read from the environment (API_BASE_URL, SOCKET_URL,
APP_NAME, TRACKER_*) and can be overridden with flags.
"""

from __future__ import annotations

import argparse
import asyncio
import locale
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from udptracker import TrackerClient, TrackerConfig, TrackerConfigError, TrackerState  # noqa: E402
from udptracker.view import render  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--api-url", help="REST API base URL (default: $API_BASE_URL)")
    parser.add_argument("--socket-url", help="Socket.IO base URL (default: $SOCKET_URL)")
    parser.add_argument("--no-live", action="store_true", help="Only use the HTTP fetch, no live updates")
    parser.add_argument("--once", action="store_true", help="Exit after the initial data has loaded")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> TrackerConfig:
    overrides: dict[str, object] = {}
    if args.api_url:
        overrides["api_base_url"] = args.api_url
    if args.socket_url:
        overrides["socket_url"] = args.socket_url
    if args.no_live:
        overrides["live_enabled"] = False
    return TrackerConfig.from_env(**overrides)


async def _run(config: TrackerConfig, *, once: bool) -> int:
    client = TrackerClient(config)

    def _print_state(state: TrackerState) -> None:
        print(
            render(
                state,
                app_name=config.app_name,
                connection_status=client.connection_status,
                client_count=client.client_count,
            ),
            flush=True,
        )
        print(flush=True)

    client.subscribe(_print_state)

    async with client:
        await client.wait_until_loaded()
        if once:
            return 1 if client.error else 0
        # Runs until interrupted.
        await asyncio.Event().wait()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        # Dates are rendered with the user's LC_TIME conventions.
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error:
        logging.getLogger(__name__).warning("Host locale unavailable, dates use the C locale")
    try:
        config = _build_config(args)
    except TrackerConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    try:
        return asyncio.run(_run(config, once=args.once))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
