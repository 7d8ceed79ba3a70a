"""
Element and CSS inspection tools.

Both tools resolve an element target to at most ``max_results`` nodes
(default 10, ceiling 50) and report one result per node. Zero matches is
an ELEMENT_NOT_FOUND error, including when ``max_results`` is 0.
"""

import logging
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from ..cdp.cascade import resolve_cascade
from ..cdp.css import expand_properties, get_computed_styles
from ..cdp.dom import (
    get_attributes,
    get_box_model,
    get_node_name,
    infer_role,
    resolve_targets,
)
from ..cdp.protocol import ElementTarget
from ..cdp.shorthand import is_shorthand, longhands_of
from ..exceptions import ElementNotFoundError, ShorthandPropertyError
from ..session.manager import SessionManager
from .common import map_query_error, parse_target, run_tool

logger = logging.getLogger(__name__)


def _not_found(target: ElementTarget) -> ElementNotFoundError:
    return ElementNotFoundError(
        "No elements found matching target",
        details={"target": target.to_dict()},
    )


async def get_element(
    manager: SessionManager,
    target: Dict[str, Any],
    include: Optional[Dict[str, Any]] = None,
    max_results: Optional[int] = None,
) -> dict:
    """Describe every node matching ``target``.

    ``include`` selects the optional facts: ``attributes`` (bool),
    ``boxModel`` (bool), ``role`` (bool) and ``computed`` (list of property
    names, ``ALL_DEFAULTS`` expands to the default set). The upper-case
    node name is always reported.
    """
    include = include or {}

    async with manager.active_session() as session:
        element_target = parse_target(target)
        connection = session.connection
        try:
            node_ids = await resolve_targets(connection, element_target, max_results)
            if not node_ids:
                raise _not_found(element_target)

            computed_properties = None
            if include.get("computed"):
                computed_properties = expand_properties(include["computed"])

            results: List[dict] = []
            for node_id in node_ids:
                info: Dict[str, Any] = {"exists": True}

                node_name = await get_node_name(connection, node_id)
                if node_name:
                    info["nodeName"] = node_name

                attributes = None
                if include.get("attributes") or include.get("role"):
                    attributes = await get_attributes(connection, node_id)
                if include.get("attributes") and attributes is not None:
                    info["attributes"] = attributes

                if include.get("boxModel"):
                    box_model = await get_box_model(connection, node_id)
                    if box_model is not None:
                        info["boxModel"] = box_model.to_dict()

                if computed_properties:
                    info["computed"] = await get_computed_styles(
                        connection, node_id, computed_properties
                    )

                if include.get("role"):
                    role = infer_role(node_name, attributes)
                    if role:
                        info["role"] = role

                results.append(info)
        except Exception as e:
            raise map_query_error(e, session.config.query_ms, "get element") from e

        manager.touch()
    return {"matchCount": len(node_ids), "results": results}


async def get_css_provenance(
    manager: SessionManager,
    target: Dict[str, Any],
    property_name: str,
    include_contributors: bool = False,
    max_results: Optional[int] = None,
) -> dict:
    """Computed value and winning declaration of a longhand property per node.

    Property names are case-insensitive except custom properties (``--*``).

    Raises:
        ShorthandPropertyError: Before any other work when the property is a shorthand
    """
    property_name = property_name.strip()
    if not property_name.startswith("--"):
        property_name = property_name.lower()
    if is_shorthand(property_name):
        raise ShorthandPropertyError(
            f"Property '{property_name}' is a CSS shorthand. Query its longhand properties instead.",
            details={"property": property_name, "longhands": longhands_of(property_name)},
        )

    async with manager.active_session() as session:
        element_target = parse_target(target)
        connection = session.connection
        try:
            node_ids = await resolve_targets(connection, element_target, max_results)
            if not node_ids:
                raise _not_found(element_target)

            results: List[dict] = []
            for node_id in node_ids:
                computed = await get_computed_styles(connection, node_id, [property_name])
                cascade = await resolve_cascade(
                    connection, node_id, property_name, include_contributors
                )

                info: Dict[str, Any] = {
                    "property": property_name,
                    "computedValue": computed.get(property_name) or None,
                }
                if cascade.winner is not None:
                    info["winner"] = cascade.winner.to_dict()
                if cascade.contributors:
                    info["contributors"] = [c.to_dict() for c in cascade.contributors]
                results.append(info)
        except Exception as e:
            raise map_query_error(e, session.config.query_ms, "get CSS provenance") from e

        manager.touch()
    return {"matchCount": len(node_ids), "results": results}


def register_inspection_tools(mcp: FastMCP, manager: SessionManager) -> None:
    """Register element and CSS inspection tools."""

    @mcp.tool(name="devtools_get_element")
    async def devtools_get_element(
        target: Dict[str, str],
        include: Optional[Dict[str, Any]] = None,
        max_results: Optional[int] = None,
    ) -> dict:
        """
        Inspect elements matching an id or CSS selector.

        Args:
            target: {"kind": "id" | "selector", "value": "..."}
            include: Optional facts to report: {"attributes": bool, "boxModel": bool,
                "role": bool, "computed": ["display", ...] or ["ALL_DEFAULTS"]}
            max_results: Maximum matches to report (default 10, capped at 50)

        Returns:
            Dict with matchCount and one result per matched element
        """
        return await run_tool(
            "devtools_get_element",
            get_element(manager, target, include, max_results),
        )

    @mcp.tool(name="devtools_get_css_provenance")
    async def devtools_get_css_provenance(
        target: Dict[str, str],
        property: str,
        include_contributors: bool = False,
        max_results: Optional[int] = None,
    ) -> dict:
        """
        Explain where a CSS property's value comes from.

        Reports the computed value and the declaration that wins the cascade
        (inline or stylesheet, selector, stylesheet URL, zero-based line and
        column, source snippet). Selector specificity is not compared: within
        the same importance and origin the later rule in match order wins.
        Shorthands such as margin or border are rejected; query a longhand
        like margin-top instead.

        Args:
            target: {"kind": "id" | "selector", "value": "..."}
            property: Longhand CSS property name
            include_contributors: Also report the declarations that lost
            max_results: Maximum matches to report (default 10, capped at 50)

        Returns:
            Dict with matchCount and one result per matched element
        """
        return await run_tool(
            "devtools_get_css_provenance",
            get_css_provenance(manager, target, property, include_contributors, max_results),
        )
