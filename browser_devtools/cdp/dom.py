"""Element resolution and per-node DOM accessors.

``resolve_targets`` is match-count agnostic: an empty list is a valid
answer and the tool layer decides whether that is an error. The per-node
accessors are best-effort and return None when the browser cannot answer
for one node (detached, not rendered, ...), so one bad node never aborts
a batch.
"""

import logging
from typing import Dict, List, Optional

from .connection import CDPConnection
from .protocol import BoxModel, ElementTarget
from ..exceptions import CDPError, CDPTimeoutError, UnexpectedError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 10
MAX_RESULTS_CEILING = 50

ROLE_BY_TAG = {
    "a": "link",
    "button": "button",
    "select": "combobox",
    "textarea": "textbox",
    "img": "img",
    "nav": "navigation",
    "main": "main",
    "header": "banner",
    "footer": "contentinfo",
    "section": "region",
    "article": "article",
    "aside": "complementary",
    "form": "form",
    "table": "table",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
}

ROLE_BY_INPUT_TYPE = {
    "button": "button",
    "submit": "button",
    "reset": "button",
    "checkbox": "checkbox",
    "radio": "radio",
    "text": "textbox",
    "email": "textbox",
    "password": "textbox",
    "search": "searchbox",
    "tel": "textbox",
    "url": "textbox",
    "number": "spinbutton",
    "range": "slider",
}


def css_escape(ident: str) -> str:
    """Escape a string for use as a CSS identifier (CSSOM ``CSS.escape``)."""
    out = []
    for index, ch in enumerate(ident):
        code = ord(ch)
        if code == 0:
            out.append("\ufffd")
        elif 0x01 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif ch.isdigit() and ch.isascii() and (
            index == 0 or (index == 1 and ident[0] == "-")
        ):
            out.append(f"\\{code:x} ")
        elif index == 0 and ch == "-" and len(ident) == 1:
            out.append("\\-")
        elif code >= 0x80 or ch in "-_" or (ch.isascii() and ch.isalnum()):
            out.append(ch)
        else:
            out.append(f"\\{ch}")
    return "".join(out)


def target_selector(target: ElementTarget) -> str:
    """Selector for a target: ``#<escaped id>`` or the selector verbatim."""
    if target.kind == "id":
        return f"#{css_escape(target.value)}"
    return target.value


def clamp_max_results(max_results: Optional[int]) -> int:
    if max_results is None:
        return DEFAULT_MAX_RESULTS
    return max(0, min(int(max_results), MAX_RESULTS_CEILING))


async def resolve_targets(
    connection: CDPConnection,
    target: ElementTarget,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
) -> List[int]:
    """Node ids matching the target, truncated to the clamped maximum.

    Raises:
        CDPTimeoutError: If the query times out
        UnexpectedError: If the document or selector query fails
    """
    limit = clamp_max_results(max_results)
    if limit == 0:
        return []

    selector = target_selector(target)
    try:
        document = await connection.execute_command("DOM.getDocument", {"depth": 0})
        result = await connection.execute_command(
            "DOM.querySelectorAll",
            {"nodeId": document["root"]["nodeId"], "selector": selector},
        )
    except CDPTimeoutError:
        raise
    except CDPError as e:
        raise UnexpectedError(
            f"Failed to resolve element target: {e}",
            details={"target": target.to_dict(), "selector": selector, "originalError": str(e)},
        ) from e

    return list(result.get("nodeIds", []))[:limit]


async def get_attributes(connection: CDPConnection, node_id: int) -> Optional[Dict[str, str]]:
    try:
        result = await connection.execute_command("DOM.getAttributes", {"nodeId": node_id})
    except CDPError as e:
        logger.debug(f"Attributes unavailable for node {node_id}: {e}")
        return None

    # Flat list: [name1, value1, name2, value2, ...]
    flat = result.get("attributes", [])
    return dict(zip(flat[0::2], flat[1::2]))


async def get_box_model(connection: CDPConnection, node_id: int) -> Optional[BoxModel]:
    """Box model of a rendered node; None for display:none or detached nodes."""
    try:
        result = await connection.execute_command("DOM.getBoxModel", {"nodeId": node_id})
        return BoxModel.from_payload(result["model"])
    except (CDPError, KeyError, IndexError, TypeError) as e:
        logger.debug(f"Box model unavailable for node {node_id}: {e}")
        return None


async def get_node_name(connection: CDPConnection, node_id: int) -> Optional[str]:
    try:
        result = await connection.execute_command("DOM.describeNode", {"nodeId": node_id})
    except CDPError as e:
        logger.debug(f"Node description unavailable for node {node_id}: {e}")
        return None
    name = (result.get("node") or {}).get("nodeName")
    return name.upper() if name else None


def infer_role(
    node_name: Optional[str],
    attributes: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Explicit role attribute, else the implicit ARIA role of the tag."""
    attributes = attributes or {}
    if attributes.get("role"):
        return attributes["role"]
    if not node_name:
        return None

    tag = node_name.lower()
    if tag == "input":
        input_type = (attributes.get("type") or "text").lower()
        return ROLE_BY_INPUT_TYPE.get(input_type, "textbox")
    return ROLE_BY_TAG.get(tag)
