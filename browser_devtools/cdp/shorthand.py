"""CSS shorthand guard.

CSS.getMatchedStylesForNode reports declarations as longhands, so a cascade
query for a shorthand would come back empty or misleading. Callers check
``is_shorthand`` before touching the style engine.
"""

from typing import Dict, List, Optional

_EDGES = ("top", "right", "bottom", "left")

SHORTHAND_TO_LONGHAND: Dict[str, List[str]] = {
    "margin": [f"margin-{edge}" for edge in _EDGES],
    "padding": [f"padding-{edge}" for edge in _EDGES],
    "border": [
        f"border-{edge}-{aspect}"
        for aspect in ("width", "style", "color")
        for edge in _EDGES
    ],
    **{
        f"border-{edge}": [f"border-{edge}-{aspect}" for aspect in ("width", "style", "color")]
        for edge in _EDGES
    },
    **{
        f"border-{aspect}": [f"border-{edge}-{aspect}" for edge in _EDGES]
        for aspect in ("width", "style", "color")
    },
    "background": [
        "background-color",
        "background-image",
        "background-repeat",
        "background-position",
        "background-size",
    ],
    "font": [
        "font-style",
        "font-variant",
        "font-weight",
        "font-size",
        "line-height",
        "font-family",
    ],
    "flex": ["flex-grow", "flex-shrink", "flex-basis"],
}


def is_shorthand(property_name: str) -> bool:
    return property_name.strip().lower() in SHORTHAND_TO_LONGHAND


def longhands_of(property_name: str) -> Optional[List[str]]:
    """Longhand names for a shorthand, or None for anything else."""
    longhands = SHORTHAND_TO_LONGHAND.get(property_name.strip().lower())
    return list(longhands) if longhands is not None else None
