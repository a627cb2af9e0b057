"""Command line entry point: run the server and maintenance tasks."""
import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional

import uvicorn

from .core.config import settings
from .core.database import db
from .core.errors import UserExistsError
from .core.logging_config import setup_logging
from .services.auth_service import ROLES, auth_service
from .services.category_service import category_service
from .services.feed_parser import feed_parser
from .services.llm_service import llm_service
from .services.rss_service import rss_service

logger = logging.getLogger(__name__)


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run(
        "newsai.main:app",
        host=args.host,
        port=args.port or settings.PORT,
        reload=args.reload,
    )
    return 0


async def _check_feeds() -> int:
    await db.init_db()
    await category_service.initialize_standard_categories()
    if settings.RSS_FEEDS:
        await rss_service.initialize_feed_sources(settings.RSS_FEEDS)
    try:
        summary = await rss_service.fetch_all_feeds()
    finally:
        await feed_parser.close()
        await llm_service.close()
    for result in summary.results:
        line = f"{result.source_name}: {result.status}, {result.new_articles} new"
        if result.error:
            line += f" ({result.error})"
        print(line)
    print(f"Total: {summary.total_new_articles} new articles from {summary.total_sources} sources")
    return 0


async def _create_user(args: argparse.Namespace) -> int:
    await db.init_db()
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters long", file=sys.stderr)
        return 1
    try:
        user = await auth_service.create_user(args.username, password, args.role)
    except UserExistsError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Created {user.role} user {user.username} (id {user.id})")
    return 0


async def _reset_db() -> int:
    await db.reset_db()
    await category_service.initialize_standard_categories()
    print("Database reset complete")
    return 0


async def _cleanup_categories() -> int:
    await db.init_db()
    removed = await category_service.cleanup_duplicates()
    print(f"Removed {removed} duplicate categories")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="newsai", description="News AI backend")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true", default=settings.is_development)

    sub.add_parser("check-feeds", help="Fetch every active feed once")

    create_user = sub.add_parser("create-user", help="Create a user account")
    create_user.add_argument("username")
    create_user.add_argument("--password", help="Prompted for when omitted")
    create_user.add_argument("--role", choices=ROLES, default="viewer")

    reset = sub.add_parser("reset-db", help="Drop and recreate every table")
    reset.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("cleanup-categories", help="Merge categories that differ only by case")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings, persist=False)

    if args.command == "serve":
        return _serve(args)
    if args.command == "check-feeds":
        return asyncio.run(_check_feeds())
    if args.command == "create-user":
        return asyncio.run(_create_user(args))
    if args.command == "reset-db":
        if not args.yes and input("This deletes all data. Continue? [y/N] ").strip().lower() != "y":
            print("Aborted")
            return 1
        return asyncio.run(_reset_db())
    if args.command == "cleanup-categories":
        return asyncio.run(_cleanup_categories())
    return 1


if __name__ == "__main__":
    sys.exit(main())
