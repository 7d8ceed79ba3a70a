"""Typed records for the CDP payloads the inspector consumes.

Responses from DOM.* and CSS.* are narrowed here, where they are first
received, so the cascade engine and query layer work with dataclasses
instead of raw dicts. Only the fields that are actually read are kept.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class DeclarationOrigin(str, Enum):
    INLINE = "inline"
    STYLESHEET = "stylesheet"


@dataclass(frozen=True)
class SourceRange:
    """Zero-based text range inside a stylesheet."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> Optional["SourceRange"]:
        if not data:
            return None
        return cls(
            start_line=int(data.get("startLine", 0)),
            start_column=int(data.get("startColumn", 0)),
            end_line=int(data.get("endLine", 0)),
            end_column=int(data.get("endColumn", 0)),
        )


@dataclass(frozen=True)
class CSSProperty:
    """One property assignment inside a style block."""

    name: str
    value: str
    important: bool = False
    disabled: bool = False
    parsed_ok: bool = True
    implicit: bool = False
    text: Optional[str] = None
    range: Optional[SourceRange] = None

    @property
    def is_active(self) -> bool:
        """Disabled or unparsable declarations never take part in the cascade."""
        return not self.disabled and self.parsed_ok

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CSSProperty":
        return cls(
            name=data.get("name", ""),
            value=data.get("value", ""),
            important=bool(data.get("important", False)),
            disabled=bool(data.get("disabled", False)),
            parsed_ok=bool(data.get("parsedOk", True)),
            implicit=bool(data.get("implicit", False)),
            text=data.get("text"),
            range=SourceRange.from_payload(data.get("range")),
        )


@dataclass(frozen=True)
class CSSStyle:
    properties: Tuple[CSSProperty, ...] = ()
    stylesheet_id: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> Optional["CSSStyle"]:
        if data is None:
            return None
        return cls(
            properties=tuple(
                CSSProperty.from_payload(p) for p in data.get("cssProperties") or []
            ),
            stylesheet_id=data.get("styleSheetId"),
        )


@dataclass(frozen=True)
class CSSRule:
    """A stylesheet rule that matched the node.

    Attributes:
        selector_text: Whole selector group, verbatim (e.g. ".a, .b > p")
        style: Declarations of the rule
        origin: "user-agent", "regular" (author), "injected", "inspector"
        stylesheet_id: Opaque handle of the owning stylesheet
    """

    selector_text: str
    style: CSSStyle
    origin: str = "regular"
    stylesheet_id: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CSSRule":
        style = CSSStyle.from_payload(data.get("style")) or CSSStyle()
        return cls(
            selector_text=(data.get("selectorList") or {}).get("text", ""),
            style=style,
            origin=data.get("origin", "regular"),
            stylesheet_id=data.get("styleSheetId") or style.stylesheet_id,
        )


@dataclass(frozen=True)
class MatchedStyles:
    """Inline style block plus matched rules, in the engine's match order."""

    inline_style: Optional[CSSStyle]
    rules: Tuple[CSSRule, ...]

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "MatchedStyles":
        return cls(
            inline_style=CSSStyle.from_payload(data.get("inlineStyle")),
            rules=tuple(
                CSSRule.from_payload(match["rule"])
                for match in data.get("matchedCSSRules") or []
                if "rule" in match
            ),
        )


@dataclass(frozen=True)
class Declaration:
    """A declaration collected for one (node, property) query."""

    property: CSSProperty
    origin: DeclarationOrigin
    rule: Optional[CSSRule] = None

    def __post_init__(self):
        if self.origin is DeclarationOrigin.INLINE and self.rule is not None:
            raise ValueError("inline declarations cannot belong to a rule")

    @property
    def stylesheet_id(self) -> Optional[str]:
        return self.rule.stylesheet_id if self.rule else None


@dataclass
class DeclarationSource:
    """Provenance of one declaration, in the shape reported to the agent."""

    source: str
    value: Optional[str] = None
    important: Optional[bool] = None
    selector: Optional[str] = None
    stylesheet_url: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    snippet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "source": self.source,
            "selector": self.selector,
            "stylesheetUrl": self.stylesheet_url,
            "line": self.line,
            "column": self.column,
            "important": self.important,
            "snippet": self.snippet,
            "value": self.value,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class CascadeResult:
    winner: Optional[DeclarationSource] = None
    contributors: Optional[List[DeclarationSource]] = None


@dataclass(frozen=True)
class Quad:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, points: List[float]) -> "Quad":
        """Build from a CDP quad: four clockwise corners from top-left."""
        return cls(
            x=points[0],
            y=points[1],
            width=points[4] - points[0],
            height=points[5] - points[1],
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class BoxModel:
    x: float
    y: float
    width: float
    height: float
    content: Quad
    padding: Quad
    border: Quad
    margin: Quad

    @classmethod
    def from_payload(cls, model: Dict[str, Any]) -> "BoxModel":
        content = model["content"]
        return cls(
            x=content[0],
            y=content[1],
            width=model["width"],
            height=model["height"],
            content=Quad.from_points(content),
            padding=Quad.from_points(model["padding"]),
            border=Quad.from_points(model["border"]),
            margin=Quad.from_points(model["margin"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "content": self.content.to_dict(),
            "padding": self.padding.to_dict(),
            "border": self.border.to_dict(),
            "margin": self.margin.to_dict(),
        }


@dataclass
class ElementTarget:
    """Caller-supplied locator: an element id or a CSS selector."""

    kind: str
    value: str

    KINDS = ("id", "selector")

    def __post_init__(self):
        if self.kind not in self.KINDS:
            raise ValueError(f"target kind must be one of {self.KINDS}, got {self.kind!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementTarget":
        return cls(kind=data.get("kind", ""), value=data.get("value", ""))

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "value": self.value}
