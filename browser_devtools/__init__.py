"""Browser DOM/CSS inspection for LLM agents over the Model Context Protocol.

This package provides:
- CDP layer: websocket connection, target discovery, DOM and CSS queries
- Cascade engine: which declaration governs a property, and where it lives
- Session manager: one Playwright browser with deterministic teardown
- Tools and server: the MCP tool surface served over stdio
- CLI: the browser-devtools command
"""

__version__ = "0.1.0"
