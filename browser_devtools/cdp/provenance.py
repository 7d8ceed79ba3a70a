"""Declaration source resolution.

Maps a collected Declaration to the DeclarationSource reported to the
agent. Value and importance are always present; selector, location,
snippet and stylesheet URL are best-effort and simply left out when the
browser cannot supply them.
"""

import logging
from typing import Dict, Optional

from .connection import CDPConnection
from .css import extract_snippet, get_stylesheet_text
from .protocol import Declaration, DeclarationOrigin, DeclarationSource

logger = logging.getLogger(__name__)


class StylesheetTextCache:
    """Per-query memo of stylesheet text, so shared sheets are fetched once.

    Never outlives a single query: stylesheets can change between navigations.
    """

    def __init__(self, connection: CDPConnection):
        self.connection = connection
        self._texts: Dict[str, Optional[str]] = {}

    async def get(self, stylesheet_id: str) -> Optional[str]:
        if stylesheet_id not in self._texts:
            self._texts[stylesheet_id] = await get_stylesheet_text(
                self.connection, stylesheet_id
            )
        return self._texts[stylesheet_id]


def stylesheet_url(connection: CDPConnection, stylesheet_id: str) -> Optional[str]:
    """Source URL of a stylesheet from its styleSheetAdded header.

    Inline <style> sheets report the owning document's URL.
    """
    header = connection.get_stylesheet_header(stylesheet_id)
    if not header:
        return None
    return header.get("sourceURL") or None


async def resolve_declaration(
    connection: CDPConnection,
    declaration: Declaration,
    texts: Optional[StylesheetTextCache] = None,
) -> DeclarationSource:
    """Build the provenance record for one declaration."""
    prop = declaration.property
    source = DeclarationSource(
        source=declaration.origin.value,
        value=prop.value,
        important=prop.important,
    )

    if declaration.origin is DeclarationOrigin.INLINE:
        return source

    rule = declaration.rule
    if rule.selector_text:
        source.selector = rule.selector_text

    if prop.range is not None:
        source.line = prop.range.start_line
        source.column = prop.range.start_column

    stylesheet_id = declaration.stylesheet_id
    if not stylesheet_id:
        return source

    if prop.range is not None:
        texts = texts or StylesheetTextCache(connection)
        text = await texts.get(stylesheet_id)
        if text:
            snippet = extract_snippet(text, prop.range.start_line)
            if snippet and snippet.strip():
                source.snippet = snippet.strip()

    source.stylesheet_url = stylesheet_url(connection, stylesheet_id)
    return source
