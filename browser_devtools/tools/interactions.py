"""
Page interaction tool - a sequence of click/fill/type/press/select/wait actions.

Actions run in order and stop at the first failure, which is reported in
the result rather than raised so the agent sees how far the sequence got.
"""

import logging
import re
from typing import Any, Dict, List

from fastmcp import FastMCP

from ..session.manager import SessionManager
from .common import run_tool

logger = logging.getLogger(__name__)

DEFAULT_ACTION_TIMEOUT_MS = 5000

ACTION_TYPES = (
    "click",
    "fill",
    "type",
    "press",
    "select",
    "wait",
    "waitForSelector",
    "waitForNavigation",
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """clickCount -> click_count, so agent-facing option names map onto Playwright kwargs."""
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in options.items()}


def _require(action: Dict[str, Any], key: str) -> Any:
    if key not in action:
        raise ValueError(f"Action '{action.get('type')}' requires '{key}'")
    return action[key]


async def execute_action(page: Any, action: Dict[str, Any]) -> None:
    """Run one action against a Playwright page.

    Raises:
        ValueError: If the action type is unknown or a required field is missing
    """
    action_type = action.get("type")
    options = _snake_options(action.get("options") or {})
    options.setdefault("timeout", DEFAULT_ACTION_TIMEOUT_MS)

    if action_type == "click":
        await page.click(_require(action, "selector"), **options)
    elif action_type == "fill":
        await page.fill(_require(action, "selector"), _require(action, "value"), timeout=options["timeout"])
    elif action_type == "type":
        await page.type(_require(action, "selector"), _require(action, "text"), **options)
    elif action_type == "press":
        await page.press(_require(action, "selector"), _require(action, "key"), **options)
    elif action_type == "select":
        await page.select_option(
            _require(action, "selector"), _require(action, "values"), timeout=options["timeout"]
        )
    elif action_type == "wait":
        await page.wait_for_timeout(_require(action, "delay"))
    elif action_type == "waitForSelector":
        await page.wait_for_selector(_require(action, "selector"), **options)
    elif action_type == "waitForNavigation":
        state = options.pop("wait_until", "networkidle")
        await page.wait_for_load_state(state, timeout=options["timeout"])
    else:
        raise ValueError(f"Unknown action type: {action_type} (expected one of {', '.join(ACTION_TYPES)})")


async def page_interact(manager: SessionManager, actions: List[Dict[str, Any]]) -> dict:
    async with manager.active_session() as session:
        for index, action in enumerate(actions):
            try:
                await execute_action(session.page, action)
            except Exception as e:
                logger.info(f"Action {index} ({action.get('type')}) failed: {e}")
                return {
                    "ok": False,
                    "failedAtIndex": index,
                    "error": str(e),
                    "action": action,
                }

        manager.touch()
    return {"ok": True}


def register_interaction_tools(mcp: FastMCP, manager: SessionManager) -> None:
    """Register the page interaction tool."""

    @mcp.tool(name="devtools_page_interact")
    async def devtools_page_interact(actions: List[Dict[str, Any]]) -> dict:
        """
        Run a sequence of page actions, stopping at the first failure.

        Each action is a dict with a "type" and its fields:
            {"type": "click", "selector": "#save", "options": {"clickCount": 2}}
            {"type": "fill", "selector": "#email", "value": "a@b.c"}
            {"type": "type", "selector": "#search", "text": "shoes"}
            {"type": "press", "selector": "#search", "key": "Enter"}
            {"type": "select", "selector": "#size", "values": ["m"]}
            {"type": "wait", "delay": 500}
            {"type": "waitForSelector", "selector": ".results", "options": {"state": "visible"}}
            {"type": "waitForNavigation", "options": {"waitUntil": "load"}}

        Actions time out after 5 seconds unless options.timeout says otherwise.

        Args:
            actions: Actions to run in order

        Returns:
            {"ok": true}, or {"ok": false, "failedAtIndex", "error", "action"}
        """
        return await run_tool("devtools_page_interact", page_interact(manager, actions))
