"""CDP WebSocket connection management.

Provides CDPConnection class for low-level CDP command execution and event subscription.
Handles WebSocket lifecycle, message routing, and stylesheet header bookkeeping.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from ..exceptions import (
    CDPTimeoutError,
    CommandFailedError,
    ConnectionClosedError,
    ConnectionFailedError,
)

logger = logging.getLogger(__name__)


class CDPConnection:
    """Manages WebSocket connection to a page's Chrome DevTools Protocol endpoint.

    Handles:
    - Connection lifecycle (connect, disconnect, context manager)
    - Command execution with timeout handling
    - Event subscription and dispatching
    - Message routing between commands and events
    - Stylesheet headers announced by CSS.styleSheetAdded (for source URLs)

    Usage:
        async with CDPConnection(ws_url) as conn:
            await conn.execute_command("DOM.enable")
            doc = await conn.execute_command("DOM.getDocument", {"depth": 0})

    Attributes:
        ws_url: WebSocket debugger URL
        timeout: Default command timeout in seconds
        max_size: Maximum WebSocket message size in bytes (for large stylesheets)
    """

    def __init__(
        self,
        ws_url: str,
        *,
        timeout: float = 8.0,
        max_size: int = 8_388_608  # 8MB, matched-style payloads get large
    ):
        """Initialize CDP connection.

        Args:
            ws_url: WebSocket debugger URL (e.g., ws://127.0.0.1:9222/devtools/page/ABC123)
            timeout: Default command timeout in seconds
            max_size: Maximum WebSocket message size in bytes
        """
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.timeout = timeout
        self.max_size = max_size

        self._ws: Any = None
        self._next_command_id: int = 1
        self._pending_commands: Dict[int, asyncio.Future] = {}
        self._event_handlers: Dict[str, List[Callable[[dict], Awaitable[None]]]] = {}
        self._receive_task: Optional[asyncio.Task] = None
        self._stylesheet_headers: Dict[str, dict] = {}
        self._is_connected: bool = False

        self.subscribe("CSS.styleSheetAdded", self._on_stylesheet_added)
        self.subscribe("CSS.styleSheetRemoved", self._on_stylesheet_removed)

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket connection is active."""
        if not self._is_connected or self._ws is None:
            return False
        try:
            return self._ws.state.name == "OPEN"
        except AttributeError:
            return not getattr(self._ws, "closed", True)

    async def connect(self) -> None:
        """Establish WebSocket connection and start receive loop.

        Raises:
            ConnectionFailedError: If WebSocket connection fails
        """
        try:
            logger.info(f"Connecting to {self.ws_url}")
            self._ws = await websockets.connect(
                self.ws_url,
                max_size=self.max_size
            )
            self._is_connected = True
            self._receive_task = asyncio.create_task(self._receive_loop())
            logger.info("CDP connection established")
        except Exception as e:
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}",
                details={"url": self.ws_url, "error": str(e)}
            ) from e

    async def disconnect(self) -> None:
        """Close WebSocket connection gracefully."""
        logger.info("Disconnecting CDP connection")
        self._is_connected = False

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass

        if self._ws:
            try:
                if hasattr(self._ws, "state") and self._ws.state.name != "CLOSED":
                    await self._ws.close()
                elif not hasattr(self._ws, "state"):
                    await self._ws.close()
            except Exception as e:
                logger.warning(f"Error closing WebSocket: {e}")

        for future in self._pending_commands.values():
            if not future.done():
                future.set_exception(
                    ConnectionClosedError("Connection closed during command execution")
                )
        self._pending_commands.clear()
        self._stylesheet_headers.clear()

        logger.info("CDP connection closed")

    async def __aenter__(self) -> "CDPConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    async def execute_command(
        self,
        method: str,
        params: Optional[dict] = None,
        *,
        timeout: Optional[float] = None
    ) -> dict:
        """Execute CDP command and wait for response.

        Args:
            method: CDP method name (e.g., "DOM.getDocument", "CSS.enable")
            params: Method parameters (default: empty dict)
            timeout: Command timeout in seconds (default: self.timeout)

        Returns:
            Command result dict (contents of "result" field in response)

        Raises:
            ConnectionClosedError: If connection is not active
            CDPTimeoutError: If command times out
            CommandFailedError: If the browser returns an error response
        """
        if not self.is_connected:
            raise ConnectionClosedError("Cannot execute command: connection not active")

        cmd_id = self._next_command_id
        self._next_command_id += 1

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_commands[cmd_id] = future

        message = json.dumps({
            "id": cmd_id,
            "method": method,
            "params": params or {}
        })

        cmd_timeout = timeout if timeout is not None else self.timeout
        try:
            await self._ws.send(message)
            logger.debug(f"Sent command {cmd_id}: {method}")

            return await asyncio.wait_for(future, timeout=cmd_timeout)

        except asyncio.TimeoutError:
            raise CDPTimeoutError(
                "Command timed out",
                command_method=method,
                timeout=cmd_timeout
            )
        except CommandFailedError as e:
            e.method = method
            raise
        finally:
            self._pending_commands.pop(cmd_id, None)

    def subscribe(
        self,
        event_name: str,
        callback: Callable[[dict], Awaitable[None]]
    ) -> None:
        """Register async callback for CDP event.

        Args:
            event_name: CDP event name (e.g., "CSS.styleSheetAdded")
            callback: Async function with signature: async def callback(params: dict)
        """
        self._event_handlers.setdefault(event_name, []).append(callback)
        logger.debug(f"Subscribed to event: {event_name}")

    def get_stylesheet_header(self, stylesheet_id: str) -> Optional[dict]:
        """Header announced for a stylesheet, or None if never seen."""
        return self._stylesheet_headers.get(stylesheet_id)

    async def _on_stylesheet_added(self, params: dict) -> None:
        header = params.get("header") or {}
        stylesheet_id = header.get("styleSheetId")
        if stylesheet_id:
            self._stylesheet_headers[stylesheet_id] = header

    async def _on_stylesheet_removed(self, params: dict) -> None:
        self._stylesheet_headers.pop(params.get("styleSheetId"), None)

    def _dispatch_response(self, data: dict) -> None:
        future = self._pending_commands.get(data["id"])
        if future is None or future.done():
            return

        if "error" in data:
            error = data["error"]
            future.set_exception(
                CommandFailedError(
                    error.get("message", "Unknown CDP error"),
                    error_code=error.get("code"),
                    details={"error": error}
                )
            )
        else:
            future.set_result(data.get("result", {}))

    def _dispatch_event(self, data: dict) -> None:
        event_name = data["method"]
        params = data.get("params", {})
        logger.debug(f"Received event: {event_name}")

        for handler in self._event_handlers.get(event_name, []):
            try:
                asyncio.create_task(handler(params))
            except Exception as e:
                logger.error(
                    f"Event handler error for {event_name}: {e}",
                    exc_info=True
                )

    async def _receive_loop(self) -> None:
        """Background task to receive and route WebSocket messages.

        Messages with an "id" resolve pending commands; messages with a
        "method" and no "id" are events.
        """
        try:
            async for message in self._ws:
                try:
                    data = json.loads(message)
                    if "id" in data:
                        self._dispatch_response(data)
                    elif "method" in data:
                        self._dispatch_event(data)
                except json.JSONDecodeError as e:
                    logger.error(f"Malformed CDP message: {e}")
                except Exception as e:
                    logger.error(f"Error processing message: {e}", exc_info=True)

        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
            self._is_connected = False
            for future in self._pending_commands.values():
                if not future.done():
                    future.set_exception(
                        ConnectionClosedError(f"Connection closed: {e}")
                    )
        except Exception as e:
            logger.error(f"Receive loop error: {e}", exc_info=True)
            self._is_connected = False
