#!/usr/bin/env python3
"""
Command-line interface for the short link service.

Usage:
    python shortlink_cli.py shorten <url>
    python shortlink_cli.py get <identifier>
    python shortlink_cli.py delete <identifier>
    python shortlink_cli.py sweep [--retention-days N]
    python shortlink_cli.py health
"""

import argparse
import asyncio
import json
import os
import sys
from datetime import timedelta
from typing import List, Optional

# Add parent directories to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from config import load_config
from shortlink.common.logging_config import setup_logging
from shortlink.database import RedisCache, create_store
from shortlink.errors import CreateFailed, ResolveFailed
from shortlink.identifier import IdentifierGenerator
from shortlink.service import MappingService
from shortlink.sweeper import ExpirySweeper


def positive_days(value: str) -> float:
    """argparse type for a strictly positive number of days."""
    try:
        days = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if not days > 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return days


def _emit(payload: dict, ok: bool) -> int:
    print(json.dumps(payload, indent=2, default=str), file=sys.stdout if ok else sys.stderr)
    return 0 if ok else 1


class ShortlinkCLI:
    """Command-line interface for the short link service."""

    def __init__(self, db_url: str, redis_url: Optional[str] = None, verbose: bool = False):
        """Initialize CLI."""
        self.config = load_config(database_url=db_url, redis_url=redis_url)
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.service: Optional[MappingService] = None
        self.sweeper: Optional[ExpirySweeper] = None

    async def initialize(self):
        """Connect the store (migrating if needed) and optional cache."""
        store = create_store(
            self.config.database_url,
            acquire_timeout_seconds=self.config.db_acquire_timeout_seconds,
            logger=self.logger,
        )
        await store.migrate()

        cache = None
        if self.config.redis_url:
            cache = RedisCache(redis_url=self.config.redis_url, logger=self.logger)
            await cache.connect()

        self.service = MappingService(
            store=store,
            generator=IdentifierGenerator(length=self.config.identifier_length),
            cache=cache,
            logger=self.logger,
            max_create_attempts=self.config.max_create_attempts,
            created_by=self.config.created_by,
            retention=self.config.retention,
        )
        self.sweeper = ExpirySweeper(
            store=store,
            retention=self.config.retention,
            logger=self.logger,
            cache=cache,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str) -> int:
        try:
            mapping = await self.service.create(url)
        except CreateFailed as e:
            return _emit({"success": False, "error": str(e)}, ok=False)

        return _emit({"success": True, **mapping.to_dict()}, ok=True)

    async def get(self, identifier: str) -> int:
        try:
            mapping = await self.service.get_mapping(identifier)
        except ResolveFailed as e:
            return _emit({"success": False, "identifier": identifier, "error": str(e)}, ok=False)

        return _emit({"success": True, **mapping.to_dict()}, ok=True)

    async def delete(self, identifier: str) -> int:
        try:
            await self.service.delete(identifier)
        except ResolveFailed as e:
            return _emit({"success": False, "identifier": identifier, "error": str(e)}, ok=False)

        return _emit({"success": True, "identifier": identifier, "deleted": True}, ok=True)

    async def sweep(self, retention_days: Optional[float] = None) -> int:
        retention = timedelta(days=retention_days) if retention_days is not None else None
        deleted = await self.sweeper.run_once(retention=retention)

        if deleted is None:
            return _emit({"success": False, "error": "Expiry sweep failed"}, ok=False)
        return _emit({"success": True, "deleted": deleted}, ok=True)

    async def health(self) -> int:
        health_status = await self.service.health_check()
        return _emit({"success": health_status["overall"], "health": health_status}, ok=health_status["overall"])


def build_parser() -> argparse.ArgumentParser:
    config = load_config()

    parser = argparse.ArgumentParser(
        description="Shortlink CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s shorten https://example.com/long/url
  %(prog)s get abc123
  %(prog)s delete abc123
  %(prog)s sweep --retention-days 7
  %(prog)s health
        """
    )

    parser.add_argument(
        "--db-url",
        default=config.database_url,
        help="Store URL (default: DATABASE_URL)"
    )
    parser.add_argument(
        "--redis-url",
        default=config.redis_url,
        help="Redis connection URL (optional, default: REDIS_URL)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")

    get_parser = subparsers.add_parser("get", help="Show the mapping for an identifier")
    get_parser.add_argument("identifier", help="Identifier to look up")

    delete_parser = subparsers.add_parser("delete", help="Delete a mapping")
    delete_parser.add_argument("identifier", help="Identifier to delete")

    sweep_parser = subparsers.add_parser("sweep", help="Run one expiry sweep now")
    sweep_parser.add_argument(
        "--retention-days",
        type=positive_days,
        default=None,
        help="Override the configured retention (days)"
    )

    subparsers.add_parser("health", help="Check store and cache health")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = ShortlinkCLI(
        db_url=args.db_url,
        redis_url=args.redis_url,
        verbose=args.verbose,
    )

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url)
        elif args.command == "get":
            return await cli.get(args.identifier)
        elif args.command == "delete":
            return await cli.delete(args.identifier)
        elif args.command == "sweep":
            return await cli.sweep(args.retention_days)
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
