"""Cascade resolution: which declaration governs a property on a node.

Priority, highest first:

1. inline !important
2. stylesheet !important
3. inline
4. stylesheet

Within a bucket the last declaration in the browser's match order wins.
Selector specificity is NOT compared: two rules of different specificity
in the same bucket are ranked by match order only. Properties with no
direct declaration are not chased up the ancestor chain; the caller still
reports the computed value the browser gives.
"""

import logging
from typing import List, Optional

from .connection import CDPConnection
from .css import get_matched_styles
from .protocol import CascadeResult, Declaration, DeclarationOrigin, MatchedStyles
from .provenance import StylesheetTextCache, resolve_declaration

logger = logging.getLogger(__name__)


def collect_declarations(matched: MatchedStyles, property_name: str) -> List[Declaration]:
    """Active declarations of one property, inline first, then rules in match order."""
    declarations: List[Declaration] = []

    if matched.inline_style is not None:
        for prop in matched.inline_style.properties:
            if prop.name == property_name and prop.is_active:
                declarations.append(Declaration(prop, DeclarationOrigin.INLINE))

    for rule in matched.rules:
        for prop in rule.style.properties:
            if prop.name == property_name and prop.is_active:
                declarations.append(Declaration(prop, DeclarationOrigin.STYLESHEET, rule))

    return declarations


def pick_winner(declarations: List[Declaration]) -> Optional[Declaration]:
    """Last declaration of the highest non-empty priority bucket."""
    buckets = (
        (DeclarationOrigin.INLINE, True),
        (DeclarationOrigin.STYLESHEET, True),
        (DeclarationOrigin.INLINE, False),
        (DeclarationOrigin.STYLESHEET, False),
    )
    for origin, important in buckets:
        bucket = [
            d for d in declarations
            if d.origin is origin and d.property.important == important
        ]
        if bucket:
            return bucket[-1]
    return None


async def resolve_cascade(
    connection: CDPConnection,
    node_id: int,
    property_name: str,
    include_contributors: bool = False,
) -> CascadeResult:
    """Winning declaration (and optionally the losers) for a longhand property.

    Raises:
        CSSDomainUnavailableError: If matched styles cannot be fetched
        CDPTimeoutError: If the style query times out
    """
    matched = await get_matched_styles(connection, node_id)
    declarations = collect_declarations(matched, property_name)

    if not declarations:
        logger.debug(f"No declarations for {property_name} on node {node_id}")
        return CascadeResult()

    winner = pick_winner(declarations)
    texts = StylesheetTextCache(connection)
    result = CascadeResult(winner=await resolve_declaration(connection, winner, texts))

    if include_contributors:
        contributors = [
            await resolve_declaration(connection, d, texts)
            for d in declarations
            if d is not winner
        ]
        if contributors:
            result.contributors = contributors

    return result
