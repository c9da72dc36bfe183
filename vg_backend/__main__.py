"""
Video Grid server entry point.

    videogrid [--data-dir DIR] [--host HOST] [--port PORT] [--no-browser]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import webbrowser
from typing import Optional, Sequence

from aiohttp import web

from .deps import build_services
from .routes import create_app
from .shared import get_logger, log_success, resolve_log_level

logger = get_logger(__name__)

LOCAL_HOSTS = ("127.0.0.1", "localhost", "::1")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="videogrid", description="Browse local video folders as a thumbnail grid.")
    parser.add_argument("--data-dir", default=None, help="application data directory (default: ~/.videogrid)")
    parser.add_argument("--host", default=None, help="override the host from config.json")
    parser.add_argument("--port", type=int, default=None, help="override the port from config.json")
    parser.add_argument("--no-browser", action="store_true", help="do not open a browser window on start")
    return parser.parse_args(argv)


async def _serve(args: argparse.Namespace) -> int:
    res = await build_services(args.data_dir)
    if not res.ok or res.data is None:
        logger.error("Startup failed [%s]: %s", res.code, res.error)
        return 1
    services = res.data
    config = services["config"].current()
    host = args.host or config.host
    port = args.port or config.port

    if host not in LOCAL_HOSTS:
        logger.warning("Host is not localhost, this is not recommended!")
        logger.warning("Video Grid is intended to run on localhost only. Do not expose it to the internet.")

    runner = web.AppRunner(create_app(services))
    await runner.setup()
    try:
        await web.TCPSite(runner, host, port).start()
    except OSError as exc:
        logger.error("Failed to listen on %s:%s: %s", host, port, exc)
        await runner.cleanup()
        return 1

    url = f"http://{host}:{port}"
    log_success(logger, f"Server is running at {url}")
    if config.launch_browser and not args.no_browser:
        webbrowser.open(url)

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        level = resolve_log_level()
    except ValueError as exc:
        print(f"videogrid: {exc}", file=sys.stderr)
        return 2
    logging.getLogger("videogrid").setLevel(level)

    try:
        return asyncio.run(_serve(args))
    except KeyboardInterrupt:
        logger.info("Shutting down")
        return 0


if __name__ == "__main__":
    sys.exit(main())
