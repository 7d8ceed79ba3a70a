"""
Page content tools - HTML, screenshots, script evaluation, console logs.

Large outputs (screenshots, saved script results) are written to the
system temp directory and returned by path.
"""

import json
import logging
import tempfile
import time
from pathlib import Path
from typing import Optional

from fastmcp import FastMCP

from ..exceptions import JavaScriptExecutionError, UnexpectedError
from ..session.manager import SessionManager
from .common import run_tool

logger = logging.getLogger(__name__)

FILE_PREFIX = "browser-devtools"

# Runs the caller's code as the body of an async function in page scope
EVALUATE_WRAPPER = """async (code) => {
  const AsyncFunction = (async function () {}).constructor;
  return await AsyncFunction(code)();
}"""


def _temp_path(kind: str, extension: str) -> Path:
    timestamp = int(time.time() * 1000)
    return Path(tempfile.gettempdir()) / f"{FILE_PREFIX}-{kind}-{timestamp}.{extension}"


async def get_page_content(
    manager: SessionManager, start: int = 0, length: int = -1
) -> dict:
    """Slice of the page HTML; ``length=-1`` returns everything after ``start``."""
    async with manager.active_session() as session:
        try:
            html = await session.page.content()
        except Exception as e:
            raise UnexpectedError(
                f"Failed to get page content: {e}",
                details={"originalError": str(e)},
            ) from e
        manager.touch()

    end = None if length == -1 else start + length
    return {"html": html[start:end], "fullLength": len(html)}


async def take_screenshot(
    manager: SessionManager,
    full_page: bool = False,
    image_type: str = "png",
    quality: Optional[int] = None,
) -> dict:
    async with manager.active_session() as session:
        if image_type not in ("png", "jpeg"):
            raise UnexpectedError(f"Unsupported screenshot type: {image_type}")

        path = _temp_path("screenshot", "jpg" if image_type == "jpeg" else "png")
        options = {"path": str(path), "full_page": full_page, "type": image_type}
        if image_type == "jpeg" and quality is not None:
            options["quality"] = quality

        try:
            await session.page.screenshot(**options)
        except Exception as e:
            raise UnexpectedError(
                f"Failed to take screenshot: {e}",
                details={"originalError": str(e)},
            ) from e
        manager.touch()

    return {"screenshotPath": str(path)}


async def evaluate_javascript(
    manager: SessionManager, code: str, save_to_file: bool = False
) -> dict:
    """Run ``code`` in the page; the value it returns must be JSON-serialisable."""
    async with manager.active_session() as session:
        try:
            result = await session.page.evaluate(EVALUATE_WRAPPER, code)
        except Exception as e:
            raise JavaScriptExecutionError(
                f"JavaScript execution failed: {e}",
                details={"originalError": str(e)},
            ) from e
        manager.touch()

    if not save_to_file:
        return {"ok": True, "result": result}

    path = _temp_path("data", "json")
    content = json.dumps(result, indent=2)
    path.write_text(content, encoding="utf-8")
    logger.debug(f"Saved script result to {path}")
    return {
        "ok": True,
        "resultPath": str(path),
        "resultSize": len(content.encode("utf-8")),
    }


async def get_console_logs(
    manager: SessionManager,
    level: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> dict:
    """Captured console messages, filtered, newest ``limit`` last."""
    session = manager.get_session()
    messages = list(session.console_messages)

    if level:
        messages = [m for m in messages if m["type"] == level]
    if search:
        needle = search.lower()
        messages = [m for m in messages if needle in m["text"].lower()]

    total = len(messages)
    if limit and limit > 0:
        messages = messages[-limit:]

    manager.touch()
    return {"messages": messages, "totalMessages": total}


def register_content_tools(mcp: FastMCP, manager: SessionManager) -> None:
    """Register page content tools."""

    @mcp.tool(name="devtools_session_get_page_content")
    async def devtools_session_get_page_content(start: int = 0, length: int = -1) -> dict:
        """
        Get the page HTML, optionally a slice of it.

        Args:
            start: Character offset to start from (default 0)
            length: Number of characters, -1 for the rest of the document

        Returns:
            Dict with the html slice and the full document length
        """
        return await run_tool(
            "devtools_session_get_page_content",
            get_page_content(manager, start, length),
        )

    @mcp.tool(name="devtools_page_screenshot")
    async def devtools_page_screenshot(
        full_page: bool = False,
        type: str = "png",
        quality: Optional[int] = None,
    ) -> dict:
        """
        Screenshot the page into a temp file.

        Args:
            full_page: Capture the whole scrollable page
            type: png or jpeg
            quality: JPEG quality 0-100 (ignored for png)

        Returns:
            Dict with screenshotPath
        """
        return await run_tool(
            "devtools_page_screenshot",
            take_screenshot(manager, full_page, type, quality),
        )

    @mcp.tool(name="devtools_evaluate_javascript")
    async def devtools_evaluate_javascript(code: str, save_to_file: bool = False) -> dict:
        """
        Run JavaScript in the page as the body of an async function.

        Use `return` to produce a value; `await` is allowed. The value must be
        JSON-serialisable.

        Args:
            code: Function body, e.g. "return document.title"
            save_to_file: Write the result as JSON to a temp file and return its path

        Returns:
            {"ok", "result"} or {"ok", "resultPath", "resultSize"}
        """
        return await run_tool(
            "devtools_evaluate_javascript",
            evaluate_javascript(manager, code, save_to_file),
        )

    @mcp.tool(name="devtools_get_console_logs")
    async def devtools_get_console_logs(
        level: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> dict:
        """
        Get console messages captured since the session started.

        Args:
            level: Only this type (log, info, warn, error, debug, ...)
            search: Case-insensitive substring filter on the message text
            limit: Return only the most recent N matches

        Returns:
            Dict with messages and the match total before the limit
        """
        return await run_tool(
            "devtools_get_console_logs",
            get_console_logs(manager, level, search, limit),
        )
