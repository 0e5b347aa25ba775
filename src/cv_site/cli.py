"""
Command-line interface for CV Site.

Provides the `cvsite` command with the following subcommands:
- db: SQLite database operations (init, import, list)
- show: Print the resolved profile for a language as JSON
- web: Serve the site
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, ConfigError, load_config
from .errors import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SUCCESS,
    CVSiteError,
)
from .languages import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def _resolve_db_path(args: argparse.Namespace) -> Optional[Path]:
    """--db flag > config file > default (None)."""
    if getattr(args, "db", None):
        return Path(args.db)
    config = getattr(args, "_config", None) or Config()
    return config.db_path()


def db_init_command(args: argparse.Namespace) -> int:
    """
    Execute the db init command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    from .db import init_db

    try:
        result_path = init_db(_resolve_db_path(args), force=args.force)
    except OSError as e:
        logger.error(f"Error initializing database: {e}")
        return EXIT_ERROR

    print(f"Database initialized: {result_path}")
    return EXIT_SUCCESS


def db_import_command(args: argparse.Namespace) -> int:
    """Execute the db import command."""
    from .db import import_profile_file

    try:
        stats = import_profile_file(
            Path(args.file),
            _resolve_db_path(args),
            overwrite=args.overwrite,
        )
    except CVSiteError as e:
        logger.error(str(e))
        return e.exit_code

    print(
        f"Imported profile '{stats['profile']}': "
        f"{stats['sections']} sections, {stats['items']} items, "
        f"{stats['translations']} translations"
    )
    return EXIT_SUCCESS


def db_list_command(args: argparse.Namespace) -> int:
    """Execute the db list command."""
    from .db import list_profiles

    try:
        profiles = list_profiles(_resolve_db_path(args))
    except CVSiteError as e:
        logger.error(str(e))
        return e.exit_code

    if not profiles:
        print("No profiles in database.")
        return EXIT_SUCCESS

    for profile in profiles:
        status = "active" if profile["is_active"] else "inactive"
        print(
            f"{profile['slug']:<24} {profile['level']:<12} {status:<9} "
            f"{profile['section_count']} sections  (created {profile['created_at']})"
        )
    return EXIT_SUCCESS


def show_command(args: argparse.Namespace) -> int:
    """Print the resolved profile tree as JSON."""
    from .db import SQLiteProfileStore
    from .profile import get_profile

    try:
        data = get_profile(SQLiteProfileStore(_resolve_db_path(args)), args.lang)
    except CVSiteError as e:
        logger.error(str(e))
        return e.exit_code

    if data is None:
        logger.error("Profile not found")
        return EXIT_NOT_FOUND

    print(json.dumps(data.to_dict(), ensure_ascii=False, indent=2))
    return EXIT_SUCCESS


def web_command(args: argparse.Namespace) -> int:
    """Start the web server."""
    from .web import run_server

    config = getattr(args, "_config", None) or Config()
    host = args.host or config.web.host
    port = args.port or config.web.port

    run_server(
        host=host,
        port=port,
        debug=args.debug or config.web.debug,
        db_path=_resolve_db_path(args),
        allow_unsafe_bind=args.allow_unsafe_bind,
    )
    return EXIT_SUCCESS


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="cvsite",
        description="Serve a data-driven, multilingual CV from a SQLite database.",
        epilog="Example: cvsite show --lang en"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"cvsite {__version__}"
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (INFO level logging)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level logging)"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress output except errors"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        dest="config_file",
        help="Path to config file (default: cv_site.toml)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands"
    )

    # DB command group
    db_parser = subparsers.add_parser(
        "db",
        help="SQLite database operations",
        description="Create the database and load profile documents into it."
    )
    db_subparsers = db_parser.add_subparsers(
        dest="db_command",
        title="db commands",
        description="Available database commands"
    )

    db_init_parser = db_subparsers.add_parser(
        "init",
        help="Initialize the database",
        description="Create the database and apply schema."
    )
    db_init_parser.add_argument(
        "--db",
        type=str,
        help="Path to database file (default: data/db/cv.db)"
    )
    db_init_parser.add_argument(
        "--force",
        action="store_true",
        help="Recreate the database even if it exists"
    )
    db_init_parser.set_defaults(func=db_init_command)

    db_import_parser = db_subparsers.add_parser(
        "import",
        help="Import a profile document",
        description="Load a profile JSON document (profile, sections, items, translations)."
    )
    db_import_parser.add_argument(
        "file",
        type=str,
        help="Path to the profile JSON file"
    )
    db_import_parser.add_argument(
        "--db",
        type=str,
        help="Path to database file (default: data/db/cv.db)"
    )
    db_import_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing profile with the same slug"
    )
    db_import_parser.set_defaults(func=db_import_command)

    db_list_parser = db_subparsers.add_parser(
        "list",
        help="List stored profiles",
        description="List profiles, oldest first; the first active one is served."
    )
    db_list_parser.add_argument(
        "--db",
        type=str,
        help="Path to database file (default: data/db/cv.db)"
    )
    db_list_parser.set_defaults(func=db_list_command)

    db_parser.set_defaults(func=lambda args: db_parser.print_help() or EXIT_SUCCESS)

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        help="Print the resolved profile as JSON",
        description="Resolve the active profile for a language and print it."
    )
    show_parser.add_argument(
        "--lang", "-l",
        type=str,
        default=DEFAULT_LANGUAGE,
        help=f"Language ({', '.join(SUPPORTED_LANGUAGES)}; default: {DEFAULT_LANGUAGE})"
    )
    show_parser.add_argument(
        "--db",
        type=str,
        help="Path to database file (default: data/db/cv.db)"
    )
    show_parser.set_defaults(func=show_command)

    # Web command
    web_parser = subparsers.add_parser(
        "web",
        help="Serve the site",
        description="Start a local web server for the CV site."
    )
    web_parser.add_argument(
        "--db",
        type=str,
        help="Path to database file (default: data/db/cv.db)"
    )
    web_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: 127.0.0.1)"
    )
    web_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: 5000)"
    )
    web_parser.add_argument(
        "--i-know-what-im-doing",
        action="store_true",
        dest="allow_unsafe_bind",
        help="Allow binding to a non-localhost address"
    )
    web_parser.set_defaults(func=web_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv).

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config_file) if args.config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        setup_logging(verbose=args.verbose, debug=args.debug, quiet=args.quiet)
        logger.error(f"Config error: {e}")
        return EXIT_CONFIG_ERROR

    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    setup_logging(
        verbose=args.verbose,
        debug=args.debug,
        quiet=args.quiet,
        log_file=log_file,
        config_level=config.logging.level,
    )
    args._config = config

    if hasattr(args, "func"):
        return args.func(args)

    parser.print_help()
    return EXIT_SUCCESS


def main_cli() -> None:
    """
    CLI entry point for setuptools console_scripts.

    Calls main() and exits with the returned code.
    """
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
