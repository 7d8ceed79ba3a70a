"""
Main CLI entry point for browser-devtools.

Usage:
    browser-devtools <subcommand> [options]

Subcommands:
    serve       - Run the MCP server over stdio
    scenarios   - List scenarios defined in the config file
"""

import argparse
import sys
from typing import List, Optional

from ..config import Configuration, ConfigurationError
from ..logging_setup import setup_logging

DEFAULT_CONFIG_FILE = "devtools.config.json"


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Global options:
        --config: JSON config file (default: ./devtools.config.json if present)
        --log-level: Log level (debug|info|warning|error)
        --log-format: Log format (json|text)
        --quiet/--verbose: Mutual exclusion group for log output control

    Returns:
        ArgumentParser with global options
    """
    parent = argparse.ArgumentParser(add_help=False)

    parent.add_argument(
        "--config",
        help=f"JSON config file (default: ./{DEFAULT_CONFIG_FILE} if present)",
    )

    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parent.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Log format on stderr (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """
    Create main parser with all subcommands.

    Args:
        parent: Parent parser with global options

    Returns:
        Main ArgumentParser with subcommands configured
    """
    parser = argparse.ArgumentParser(
        prog="browser-devtools",
        description="Browser DOM/CSS inspection for LLM agents over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve with a config file
  browser-devtools serve --config devtools.config.json

  # Serve against a local app, headed, with a 60s idle timeout
  browser-devtools serve --base-url http://localhost:3000 --no-headless --idle-ms 60000

  # Show the scenarios the start tool will offer
  browser-devtools scenarios --config devtools.config.json --format text

For more information on subcommands, run: browser-devtools <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        required=True,
    )

    from . import scenarios_cmd, serve_cmd

    serve_cmd.register_subcommand(subparsers, parent)
    scenarios_cmd.register_subcommand(subparsers, parent)

    return parser


def load_configuration(args: argparse.Namespace) -> Configuration:
    """
    Build the configuration.

    Precedence: CLI flags > env vars > config file > defaults. A config file
    named with --config must exist and parse; the default one is optional.

    Raises:
        ConfigurationError: If an explicit config file cannot be loaded
    """
    config = Configuration()
    if args.config:
        config.load_from_file(args.config, required=True)
    else:
        config.load_from_file(DEFAULT_CONFIG_FILE)
    config.load_from_env()

    config.merge(
        log_level=args.log_level.upper() if args.log_level else None,
        log_format=args.log_format,
    )

    if args.quiet:
        config.log_level = "ERROR"
    elif args.verbose:
        config.log_level = "DEBUG"

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)
    args = parser.parse_args(argv)

    try:
        config = load_configuration(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        format_type=config.log_format,
        level=config.log_level.upper(),
        quiet=args.quiet,
        verbose=args.verbose,
    )

    args.config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        if config.log_level.upper() == "DEBUG":
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
