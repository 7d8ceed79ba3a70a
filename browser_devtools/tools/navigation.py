"""
Page navigation tool.
"""

from typing import Optional

from fastmcp import FastMCP
from playwright.async_api import TimeoutError as PlaywrightTimeout

from ..config import is_origin_allowed, resolve_url
from ..exceptions import (
    NavigationBlockedError,
    NavigationTimeoutError,
    UnexpectedError,
    is_timeout,
)
from ..session.manager import SessionManager
from .common import run_tool

WAIT_STATES = ("load", "domcontentloaded", "networkidle", "commit")
DEFAULT_WAIT = "networkidle"


async def navigate(manager: SessionManager, url: str, wait: Optional[str] = None) -> dict:
    """Navigate the session page, honouring the origin allow-list.

    Raises:
        NoActiveSessionError: If no session is active
        NavigationBlockedError: If the resolved URL's origin is not allowed
        NavigationTimeoutError: If the page does not settle in time
    """
    async with manager.active_session() as session:
        config = session.config

        wait_until = wait or DEFAULT_WAIT
        if wait_until not in WAIT_STATES:
            raise UnexpectedError(
                f"Invalid wait state: {wait_until}",
                details={"allowed": list(WAIT_STATES)},
            )

        resolved_url = resolve_url(url, config.base_url)
        if not is_origin_allowed(resolved_url, config.allowed_origins):
            raise NavigationBlockedError(
                f"Navigation to {resolved_url} is blocked by policy",
                details={"url": resolved_url, "allowedOrigins": config.allowed_origins},
            )

        try:
            await session.page.goto(
                resolved_url, wait_until=wait_until, timeout=config.navigation_ms
            )
        except Exception as e:
            if isinstance(e, PlaywrightTimeout) or is_timeout(e):
                raise NavigationTimeoutError(
                    f"Navigation to {resolved_url} timed out after {config.navigation_ms}ms",
                    details={"originalError": str(e)},
                ) from e
            raise UnexpectedError(
                f"Navigation failed: {e}",
                details={"originalError": str(e)},
            ) from e

        manager.touch()
        return {"finalUrl": session.page.url}


def register_navigation_tools(mcp: FastMCP, manager: SessionManager) -> None:
    """Register the navigation tool."""

    @mcp.tool(name="devtools_session_navigate")
    async def devtools_session_navigate(url: str, wait: Optional[str] = None) -> dict:
        """
        Navigate the session page to a URL.

        Args:
            url: Absolute URL, or a path resolved against the configured base URL
            wait: Load state to wait for (load, domcontentloaded, networkidle, commit).
                Default: networkidle

        Returns:
            Dict with the final URL after redirects
        """
        return await run_tool("devtools_session_navigate", navigate(manager, url, wait))
