"""
browser-devtools MCP server.

Exposes DOM/CSS inspection of a single persistent browser session over
the Model Context Protocol (stdio transport).

Usage:
    browser-devtools serve --config devtools.config.json

Or in an MCP client config:
    {
      "browser-devtools": {
        "command": "browser-devtools",
        "args": ["serve", "--config", "devtools.config.json"]
      }
    }
"""

import asyncio
import logging
import signal
from typing import Optional, Tuple

from fastmcp import FastMCP

from .config import Configuration
from .exceptions import HookStopError
from .session.manager import SessionManager
from .tools import register_devtools_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "browser-devtools"


def create_server(
    config: Configuration, manager: Optional[SessionManager] = None
) -> Tuple[FastMCP, SessionManager]:
    """Build the FastMCP server and the session manager its tools share."""
    mcp = FastMCP(SERVER_NAME)
    manager = manager or SessionManager(config)
    tools = register_devtools_tools(mcp, manager, config)
    logger.info(f"Registered {len(tools)} tools")
    return mcp, manager


async def shutdown(manager: SessionManager) -> None:
    """Stop the session on the way out; a hook teardown failure is only logged."""
    try:
        await manager.stop()
    except HookStopError as e:
        logger.error(f"Session teardown during shutdown: {e}")


async def serve(config: Configuration) -> None:
    """Run the server over stdio until the client disconnects or a signal arrives."""
    mcp, manager = create_server(config)

    server_task = asyncio.create_task(mcp.run_async(transport="stdio"))
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server_task.cancel)

    try:
        await server_task
    except asyncio.CancelledError:
        logger.info("Shutdown signal received")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await shutdown(manager)
