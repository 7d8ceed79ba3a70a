"""
Session lifecycle tools - start and stop.

Neither tool resets the idle timer; only page-affecting tools do.
"""

from typing import Optional

from fastmcp import FastMCP

from ..config import Configuration
from ..session.manager import SessionManager
from .common import run_tool
from .navigation import navigate


async def start_session(
    manager: SessionManager,
    scenario: Optional[str] = None,
    interactive: bool = False,
    url: Optional[str] = None,
) -> dict:
    await manager.start(scenario=scenario, interactive=interactive)
    if url:
        await navigate(manager, url)
    return {"ok": True}


async def stop_session(manager: SessionManager) -> dict:
    await manager.stop()
    return {"ok": True}


def describe_start_tool(config: Configuration) -> str:
    """Tool description listing the configured scenarios."""
    lines = [
        "Start a browser session. Only one session can be active at a time.",
        "",
        "Args:",
        "    scenario: Name of a configured scenario whose hook runs once the page exists",
        "    interactive: Open a visible browser window instead of running headless",
        "    url: Navigate here once the session is up",
    ]
    if config.scenarios:
        lines += ["", "Available scenarios:"]
        for name, scenario in sorted(config.scenarios.items()):
            lines.append(f"    {name}: {scenario.description or scenario.use}")
    return "\n".join(lines)


def register_lifecycle_tools(
    mcp: FastMCP, manager: SessionManager, config: Configuration
) -> None:
    """Register session start/stop tools."""

    @mcp.tool(name="devtools_session_start", description=describe_start_tool(config))
    async def devtools_session_start(
        scenario: Optional[str] = None,
        interactive: bool = False,
        url: Optional[str] = None,
    ) -> dict:
        return await run_tool(
            "devtools_session_start",
            start_session(manager, scenario, interactive, url),
        )

    @mcp.tool(name="devtools_session_stop")
    async def devtools_session_stop() -> dict:
        """
        Stop the browser session and release all of its resources.

        Safe to call when no session is active.

        Returns:
            Dict with ok status
        """
        return await run_tool("devtools_session_stop", stop_session(manager))
