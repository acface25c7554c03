"""Command-line interface for the session table.

Administrative commands around the session table: create it, sweep expired
sessions (suitable for cron) and print the effective configuration. Settings
load from a config file, environment variables and command-line arguments,
in increasing precedence.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dbtable_session import __version__
from dbtable_session.config import Settings, load_settings_from_file, set_settings
from dbtable_session.infra.db.engine import DatabaseManager
from dbtable_session.infra.observability.logging import setup_logging
from dbtable_session.session.dbtable import DbTableSaveHandler

logger = logging.getLogger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="dbtable-session",
        description="dbtable-session - Manage the HTTP session table",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config", "-c", type=Path, help="Path to configuration file (YAML or TOML)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    parser.add_argument("--log-format", choices=["json", "text"], help="Log output format")

    parser.add_argument("--database-url", help="Database connection URL (SQLite or PostgreSQL)")

    parser.add_argument("--table-name", help="Session table name")

    parser.add_argument("--session-name", help="Session name used by the gc command")

    parser.add_argument(
        "--gc-maxlifetime", type=int, help="Max session lifetime in seconds"
    )

    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init-db", help="Create the session table if it does not exist")
    subparsers.add_parser("gc", help="Delete expired sessions")
    subparsers.add_parser("show-config", help="Print the effective configuration as JSON")

    return parser


def load_config_from_cli(parsed_args: argparse.Namespace) -> Settings:
    """Load configuration from parsed CLI arguments and environment.

    Args:
        parsed_args: Parsed command-line arguments

    Returns:
        Configured Settings instance
    """
    if parsed_args.config:
        settings = load_settings_from_file(parsed_args.config)
    else:
        settings = Settings()

    cli_overrides = {}

    if parsed_args.log_level is not None:
        cli_overrides["log_level"] = parsed_args.log_level

    if parsed_args.log_format is not None:
        cli_overrides["log_format"] = parsed_args.log_format

    if parsed_args.database_url is not None:
        cli_overrides["database_url"] = parsed_args.database_url

    if parsed_args.table_name is not None:
        cli_overrides["session_table_name"] = parsed_args.table_name

    if parsed_args.session_name is not None:
        cli_overrides["session_name"] = parsed_args.session_name

    if parsed_args.gc_maxlifetime is not None:
        cli_overrides["session_gc_maxlifetime"] = parsed_args.gc_maxlifetime

    if cli_overrides:
        settings = Settings(**{**settings.model_dump(), **cli_overrides})

    return settings


async def init_db(settings: Settings) -> None:
    """Create the session table described by settings."""
    manager = DatabaseManager(settings)
    await manager.init()
    try:
        handler = DbTableSaveHandler.from_settings(settings, manager.engine)
        await handler.gateway.create_table()
    finally:
        await manager.close()


async def run_gc(settings: Settings) -> bool:
    """Run one garbage collection sweep over the session table."""
    manager = DatabaseManager(settings)
    await manager.init()
    try:
        handler = DbTableSaveHandler.from_settings(settings, manager.engine)
        await handler.open(settings.session_save_path, settings.session_name)
        try:
            return await handler.gc(settings.session_gc_maxlifetime)
        finally:
            await handler.close()
    finally:
        await manager.close()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the dbtable-session CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    try:
        settings = load_config_from_cli(parsed_args)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    set_settings(settings)
    setup_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        log_file=settings.log_file,
    )

    try:
        if parsed_args.command == "show-config":
            print(json.dumps(settings.to_dict(), indent=2, default=str))
        elif parsed_args.command == "init-db":
            asyncio.run(init_db(settings))
        elif parsed_args.command == "gc":
            asyncio.run(run_gc(settings))
    except Exception as e:
        logger.error(f"Command {parsed_args.command} failed: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
