"""Fakes shared by the unit tests.

FakeConnection stands in for CDPConnection: it answers execute_command
from canned payloads keyed by CDP method and records every call.
The css_* and matched_styles helpers build CSS.getMatchedStylesForNode payloads.
FakeSessionManager serves a prepared Session to the tool handlers.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from browser_devtools.exceptions import CommandFailedError, NoActiveSessionError


class FakeConnection:
    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, dict]] = None,
    ):
        # Value per method: a result dict, an exception to raise, or a
        # callable taking params and returning either
        self.responses = dict(responses or {})
        self.headers = dict(headers or {})
        self.calls: List[tuple] = []

    async def execute_command(self, method: str, params: Optional[dict] = None, *, timeout=None) -> dict:
        params = params or {}
        self.calls.append((method, params))

        if method not in self.responses:
            raise CommandFailedError(f"'{method}' wasn't found", error_code=-32601)

        response = self.responses[method]
        if callable(response):
            response = response(params)
        if isinstance(response, BaseException):
            raise response
        return response

    def get_stylesheet_header(self, stylesheet_id: str) -> Optional[dict]:
        return self.headers.get(stylesheet_id)

    async def disconnect(self) -> None:
        self.calls.append(("disconnect", {}))

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]


def css_property(
    name: str,
    value: str,
    important: bool = False,
    line: Optional[int] = None,
    column: int = 2,
    disabled: bool = False,
    parsed_ok: bool = True,
) -> dict:
    data = {
        "name": name,
        "value": value,
        "important": important,
        "disabled": disabled,
        "parsedOk": parsed_ok,
    }
    if line is not None:
        data["range"] = {
            "startLine": line,
            "startColumn": column,
            "endLine": line,
            "endColumn": column + len(name) + len(value) + 2,
        }
    return data


def css_rule(selector: str, properties: List[dict], stylesheet_id: str = "sheet-1") -> dict:
    return {
        "rule": {
            "styleSheetId": stylesheet_id,
            "selectorList": {"text": selector},
            "origin": "regular",
            "style": {"styleSheetId": stylesheet_id, "cssProperties": properties},
        }
    }


def matched_styles(inline: Optional[List[dict]] = None, rules: Optional[List[dict]] = None) -> dict:
    payload: Dict[str, Any] = {"matchedCSSRules": rules or []}
    if inline is not None:
        payload["inlineStyle"] = {"cssProperties": inline}
    return payload


def quad(x: float, y: float, width: float, height: float) -> List[float]:
    return [x, y, x + width, y, x + width, y + height, x, y + height]


class FakeSessionManager:
    """Hands out one prepared Session and counts touch() calls."""

    def __init__(self, session=None):
        self.session = session
        self.touches = 0

    def get_session(self):
        if self.session is None:
            raise NoActiveSessionError("No active session. Call devtools_session_start first.")
        return self.session

    def touch(self) -> None:
        self.touches += 1

    @asynccontextmanager
    async def active_session(self):
        yield self.get_session()
