"""CSS domain accessors: computed styles, matched styles, stylesheet text."""

import logging
from typing import Dict, Iterable, List, Optional

from .connection import CDPConnection
from .protocol import MatchedStyles
from ..exceptions import CDPError, CDPTimeoutError, CSSDomainUnavailableError

logger = logging.getLogger(__name__)

# Sentinel in a computed-property request that expands to the defaults below
ALL_DEFAULTS = "ALL_DEFAULTS"

DEFAULT_COMPUTED_PROPERTIES = [
    "display",
    "position",
    "width",
    "height",
    "top",
    "right",
    "bottom",
    "left",
    "margin-top",
    "margin-right",
    "margin-bottom",
    "margin-left",
    "padding-top",
    "padding-right",
    "padding-bottom",
    "padding-left",
    "border-top-width",
    "border-right-width",
    "border-bottom-width",
    "border-left-width",
    "font-size",
    "font-family",
    "font-weight",
    "line-height",
    "color",
    "background-color",
    "z-index",
    "opacity",
    "visibility",
    "overflow",
    "flex-direction",
    "justify-content",
    "align-items",
]


def expand_properties(requested: Iterable[str]) -> List[str]:
    """Expand ALL_DEFAULTS and drop duplicates, keeping request order."""
    expanded: List[str] = []
    for name in requested:
        names = DEFAULT_COMPUTED_PROPERTIES if name == ALL_DEFAULTS else [name]
        for item in names:
            if item not in expanded:
                expanded.append(item)
    return expanded


async def get_computed_styles(
    connection: CDPConnection,
    node_id: int,
    properties: Optional[Iterable[str]] = None,
) -> Dict[str, str]:
    """Computed style of a node, limited to ``properties`` when given.

    Raises:
        CSSDomainUnavailableError: If the CSS domain rejects the query
        CDPTimeoutError: If the query times out
    """
    wanted = set(properties) if properties is not None else None
    try:
        result = await connection.execute_command(
            "CSS.getComputedStyleForNode", {"nodeId": node_id}
        )
    except CDPTimeoutError:
        raise
    except CDPError as e:
        raise CSSDomainUnavailableError(
            f"Failed to get computed styles: {e}",
            details={"nodeId": node_id, "originalError": str(e)},
        ) from e

    return {
        style["name"]: style["value"]
        for style in result.get("computedStyle", [])
        if wanted is None or style["name"] in wanted
    }


async def get_matched_styles(connection: CDPConnection, node_id: int) -> MatchedStyles:
    """Inline style and matched rules of a node; never cached.

    Raises:
        CSSDomainUnavailableError: If the CSS domain rejects the query
        CDPTimeoutError: If the query times out
    """
    try:
        result = await connection.execute_command(
            "CSS.getMatchedStylesForNode", {"nodeId": node_id}
        )
    except CDPTimeoutError:
        raise
    except CDPError as e:
        raise CSSDomainUnavailableError(
            f"Failed to get matched styles: {e}",
            details={"nodeId": node_id, "originalError": str(e)},
        ) from e

    return MatchedStyles.from_payload(result)


async def get_stylesheet_text(connection: CDPConnection, stylesheet_id: str) -> Optional[str]:
    """Full source text of a stylesheet, or None when it cannot be fetched."""
    try:
        result = await connection.execute_command(
            "CSS.getStyleSheetText", {"styleSheetId": stylesheet_id}
        )
    except CDPError as e:
        logger.debug(f"Stylesheet text unavailable for {stylesheet_id}: {e}")
        return None
    return result.get("text")


def extract_snippet(text: str, line: int, context_lines: int = 0) -> Optional[str]:
    """Lines around a zero-based line number, or None when out of range."""
    lines = text.split("\n")
    if line < 0 or line >= len(lines):
        return None

    start = max(0, line - context_lines)
    end = min(len(lines) - 1, line + context_lines)
    return "\n".join(lines[start:end + 1])
