"""
Command-line interface for the job board service.

Provides commands for preparing the database and inspecting jobs through the
request loaders.
"""

import argparse
import asyncio
import json
import logging
import sys

import structlog

from jobboard import __version__
from jobboard.board import resolvers
from jobboard.board.context import create_request_context
from jobboard.config import BoardConfig, set_config
from jobboard.state.database import Database


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def add_global_options(parser: argparse.ArgumentParser, default=None) -> None:
    """Add options accepted before or after the command name."""
    parser.add_argument(
        "--database-url",
        default=default,
        help="SQLAlchemy database URL (default: from JOBBOARD_DATABASE_URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=default,
        help="Logging level (default: from JOBBOARD_LOG_LEVEL, else INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=default,
        help="Output logs in JSON format",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jobboard",
        description="Job board service with request-scoped batch loaders",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    add_global_options(parser)

    # Suppressed defaults keep values given before the command name.
    common = argparse.ArgumentParser(add_help=False)
    add_global_options(common, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    init_parser = subparsers.add_parser(
        "init-db", parents=[common], help="Create the job board tables",
    )
    init_parser.add_argument(
        "--seed",
        action="store_true",
        help="Insert demo companies and jobs into an empty database",
    )

    jobs_parser = subparsers.add_parser(
        "jobs", parents=[common], help="List jobs with their companies",
    )
    jobs_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Page size (default: configured default_page_limit)",
    )
    jobs_parser.add_argument(
        "--offset",
        type=int,
        default=0,
        help="Number of jobs to skip (default: 0)",
    )

    company_parser = subparsers.add_parser(
        "company", parents=[common], help="Show a company and its jobs",
    )
    company_parser.add_argument(
        "--id",
        required=True,
        dest="company_id",
        help="Company ID",
    )

    return parser


def build_config(args: argparse.Namespace) -> BoardConfig:
    """Create the configuration from environment and command-line overrides."""
    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.log_json:
        overrides["log_json"] = True

    config = BoardConfig(**overrides)
    set_config(config)
    return config


async def init_db(args: argparse.Namespace, config: BoardConfig) -> None:
    """Create tables and optionally seed demo data."""
    database = Database(config)
    await database.connect()
    try:
        if args.seed:
            inserted = await database.seed_sample_data()
            print(f"Inserted {inserted} row(s).")
        print("Database ready.")
    finally:
        await database.disconnect()


async def list_jobs(args: argparse.Namespace, config: BoardConfig) -> None:
    """Print a page of jobs resolved through a fresh request context."""
    database = Database(config)
    await database.connect()
    try:
        ctx = create_request_context(database, config=config)
        page = await resolvers.jobs(ctx, limit=args.limit, offset=args.offset)
        result = await resolvers.resolve_job_list(ctx, page)

        print(json.dumps(result, indent=2))
        print()
        stats = ctx.company_loader.stats
        print(
            f"Resolved {len(result['items'])} job(s) with "
            f"{stats['batches_dispatched']} company query(ies) "
            f"for {stats['keys_dispatched']} company id(s)."
        )
    finally:
        await database.disconnect()


async def show_company(args: argparse.Namespace, config: BoardConfig) -> int:
    """Print one company with its jobs."""
    database = Database(config)
    await database.connect()
    try:
        ctx = create_request_context(database, config=config)
        try:
            found = await resolvers.company(ctx, args.company_id)
        except resolvers.NotFoundError as e:
            print(e.message, file=sys.stderr)
            return 1

        print(json.dumps(await resolvers.resolve_company(ctx, found), indent=2))
        return 0
    finally:
        await database.disconnect()


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = build_config(args)
    setup_logging(config.log_level, config.log_json)

    if args.command == "init-db":
        asyncio.run(init_db(args, config))
    elif args.command == "jobs":
        asyncio.run(list_jobs(args, config))
    elif args.command == "company":
        sys.exit(asyncio.run(show_company(args, config)))


if __name__ == "__main__":
    main()
