"""
MCP tools organized by category.

- lifecycle: session start / stop
- navigation: page navigation with origin policy
- inspection: element facts and CSS provenance
- interactions: click, fill, type, press, select, waits
- content: HTML, screenshots, script evaluation, console logs
"""

from typing import List

from fastmcp import FastMCP

from ..config import Configuration
from ..session.manager import SessionManager
from .content import register_content_tools
from .inspection import register_inspection_tools
from .interactions import register_interaction_tools
from .lifecycle import register_lifecycle_tools
from .navigation import register_navigation_tools

TOOL_NAMES = [
    "devtools_session_start",
    "devtools_session_stop",
    "devtools_session_navigate",
    "devtools_get_element",
    "devtools_get_css_provenance",
    "devtools_page_interact",
    "devtools_session_get_page_content",
    "devtools_page_screenshot",
    "devtools_evaluate_javascript",
    "devtools_get_console_logs",
]


def register_devtools_tools(
    mcp: FastMCP, manager: SessionManager, config: Configuration
) -> List[str]:
    """
    Register every devtools tool on a FastMCP server.

    Args:
        mcp: FastMCP server instance
        manager: The session manager all handlers share
        config: Resolved configuration (scenario list for the start tool)

    Returns:
        List of registered tool names
    """
    register_lifecycle_tools(mcp, manager, config)
    register_navigation_tools(mcp, manager)
    register_inspection_tools(mcp, manager)
    register_interaction_tools(mcp, manager)
    register_content_tools(mcp, manager)
    return list(TOOL_NAMES)


__all__ = [
    "TOOL_NAMES",
    "register_devtools_tools",
    "register_lifecycle_tools",
    "register_navigation_tools",
    "register_inspection_tools",
    "register_interaction_tools",
    "register_content_tools",
]
