"""
Serve subcommand: run the MCP server over stdio.

Session settings given here override the config file and environment.
"""

import argparse
import asyncio
import logging

from ..server import serve

logger = logging.getLogger(__name__)


def serve_handler(args: argparse.Namespace) -> int:
    """
    Handle 'serve' command.

    Args:
        args: Parsed command-line arguments (args.config is the merged Configuration)

    Returns:
        Exit code
    """
    config = args.config
    config.merge(
        headless=args.headless,
        base_url=args.base_url,
        idle_ms=args.idle_ms,
        allowed_origins=args.allowed_origin,
        navigation_ms=args.navigation_ms,
        query_ms=args.query_ms,
    )

    logger.info(
        f"Starting MCP server (headless={config.headless}, base_url={config.base_url}, "
        f"scenarios={len(config.scenarios)})"
    )
    asyncio.run(serve(config))
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'serve' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    serve_parser = subparsers.add_parser(
        "serve",
        parents=[parent],
        help="Run the MCP server over stdio",
        description="Serve browser inspection tools to an MCP client over stdio",
        epilog="""
Examples:
  browser-devtools serve --config devtools.config.json
  browser-devtools serve --allowed-origin http://localhost:3000 --query-ms 4000
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    serve_parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the browser headless (default: from config, else true)",
    )
    serve_parser.add_argument(
        "--base-url",
        help="Base URL relative navigation paths resolve against",
    )
    serve_parser.add_argument(
        "--idle-ms",
        type=int,
        help="Tear the session down after this many idle milliseconds",
    )
    serve_parser.add_argument(
        "--allowed-origin",
        action="append",
        help="Origin navigation may go to (repeatable; default: any)",
    )
    serve_parser.add_argument(
        "--navigation-ms",
        type=int,
        help="Navigation timeout in milliseconds",
    )
    serve_parser.add_argument(
        "--query-ms",
        type=int,
        help="DOM/CSS query timeout in milliseconds",
    )

    serve_parser.set_defaults(func=serve_handler)
