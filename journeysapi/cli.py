"""Command line entry point of the journeys API server."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from typing import List, Optional

from journeysapi.app import JourneysApp
from journeysapi.cache import MemcachedClient, create_cache_middleware
from journeysapi.repository import load_repository
from journeysapi.server import cors_middleware, serve
from journeysapi.service import JourneysDataService

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
VERSION = "dev"

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_port(env_port: str, default_port: int) -> int:
    """Return the port given as text, or the default when the text is empty.

    Raises ValueError if the text is not a decimal integer.
    """
    if env_port == "":
        return default_port
    if not _INTEGER.fullmatch(env_port):
        raise ValueError(f'invalid port "{env_port}"')
    return int(env_port)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="journeys")
    commands = parser.add_subparsers(dest="command")
    start = commands.add_parser("start", help="Start the API server", description="Start the API server")
    start.add_argument("--disable-cache", action="store_true", help="Do not use cache")
    start.add_argument("--skip-validation", action="store_true", help="Skip all validations")
    start.add_argument(
        "--dry-run", action="store_true", help="Perform a dry run without starting the server"
    )
    commands.add_parser("version", help="Print the version number")
    return parser


def _start(args: argparse.Namespace) -> int:
    base_url = os.environ.get("JOURNEYS_BASE_URL", "")
    vehicle_activity_base_url = os.environ.get("JOURNEYS_VA_BASE_URL", "")
    gtfs_path = os.environ.get("JOURNEYS_GTFS_PATH", "")

    if not base_url:
        logger.error("JOURNEYS_BASE_URL not set in environment. Cannot proceed.")
        return 1
    if not gtfs_path:
        logger.error("JOURNEYS_GTFS_PATH not set in environment. Cannot proceed.")
        return 1
    try:
        port = parse_port(os.environ.get("JOURNEYS_PORT", ""), DEFAULT_PORT)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    repository, errors = load_repository(gtfs_path)
    for error in errors:
        logger.info("%s", error)

    if args.dry_run:
        return 0

    handler = cors_middleware(JourneysApp(JourneysDataService(repository), base_url, vehicle_activity_base_url))
    if not args.disable_cache:
        try:
            handler = create_cache_middleware(MemcachedClient(os.environ.get("MEMCACHED_URL", "")), handler)
        except RuntimeError as exc:
            logger.error("%s", exc)
            return 1
        logger.info("Using cache")

    serve(
        handler,
        port,
        lambda p: logger.info("listening on port %s", p),
        lambda err: logger.error("%s", err),
        lambda: logger.info("shutting down"),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the journeys command; return the process exit status."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    if args.command == "start":
        return _start(args)
    if args.command == "version":
        print("Version:", VERSION)
        return 0
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())