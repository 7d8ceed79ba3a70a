"""Helpers shared by the tool handlers: error mapping and argument parsing."""

import json
import logging
from typing import Any, Awaitable, Dict, TypeVar

from fastmcp.exceptions import ToolError

from ..cdp.protocol import ElementTarget
from ..exceptions import DevToolsError, QueryTimeoutError, UnexpectedError, is_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


def map_query_error(err: BaseException, query_ms: int, action: str) -> DevToolsError:
    """Classify a failure raised while querying the page.

    DevToolsErrors pass through unchanged; timeouts become QUERY_TIMEOUT and
    anything else UNEXPECTED_ERROR.
    """
    if isinstance(err, DevToolsError):
        return err
    if is_timeout(err):
        return QueryTimeoutError(
            f"Query timed out after {query_ms}ms",
            details={"originalError": str(err)},
        )
    return UnexpectedError(
        f"Failed to {action}: {err}",
        details={"originalError": str(err)},
    )


def parse_target(target: Dict[str, Any]) -> ElementTarget:
    """Validate a caller-supplied ``{kind, value}`` locator."""
    try:
        element_target = ElementTarget.from_dict(target or {})
    except ValueError as e:
        raise UnexpectedError(str(e), details={"target": target}) from e
    if not element_target.value:
        raise UnexpectedError("target value must not be empty", details={"target": target})
    return element_target


async def run_tool(name: str, call: Awaitable[T]) -> T:
    """Await a handler and turn failures into MCP tool errors.

    The error text is the JSON ``{"error": {"code", "message", "details"?}}``
    envelope so agents can branch on the code.
    """
    try:
        return await call
    except DevToolsError as e:
        logger.info(f"{name} failed: {e}")
        raise ToolError(json.dumps(e.to_dict())) from e
    except Exception as e:
        logger.exception(f"{name} failed unexpectedly")
        err = UnexpectedError(f"{name} failed: {e}", details={"originalError": str(e)})
        raise ToolError(json.dumps(err.to_dict())) from e
