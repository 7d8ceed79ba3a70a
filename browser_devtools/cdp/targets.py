"""
Target discovery over the browser's remote-debugging HTTP endpoint.

The session manager launches Chromium with ``--remote-debugging-port`` and
uses this module to turn the page's target id into a WebSocket URL.
"""

import json
import socket
import urllib.error
import urllib.request
from typing import Any, Dict, List, Optional

from .connection import CDPConnection
from ..exceptions import CDPError, CDPTargetNotFoundError


def find_free_port(host: str = "127.0.0.1") -> int:
    """Ask the OS for an unused TCP port for the debugging endpoint."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


class Target:
    """
    A debuggable browser target (page, iframe, worker).

    Attributes:
        id: Unique target ID
        type: Target type ("page", "iframe", "worker", "service_worker", "browser")
        title: Page title or worker name
        url: Target URL
        webSocketDebuggerUrl: CDP WebSocket URL for this target
    """

    def __init__(self, target_data: Dict[str, Any]):
        self.id = target_data["id"]
        self.type = target_data["type"]
        self.title = target_data.get("title", "")
        self.url = target_data.get("url", "")
        self.webSocketDebuggerUrl = target_data.get("webSocketDebuggerUrl", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "url": self.url,
            "webSocketDebuggerUrl": self.webSocketDebuggerUrl,
        }

    def __repr__(self):
        return f"Target(id={self.id!r}, type={self.type!r}, url={self.url!r})"


class TargetDiscovery:
    """
    Discovers targets via the /json endpoint and creates CDP connections.

    Usage:
        discovery = TargetDiscovery("127.0.0.1", port)
        target = discovery.get_target_by_id(target_id)
        conn = discovery.connect_to_target(target, timeout=8.0)

    Attributes:
        chrome_host: Debugging host (default: "127.0.0.1")
        chrome_port: Debugging port
        timeout: HTTP request timeout for target discovery (default: 5s)
    """

    def __init__(
        self,
        chrome_host: str = "127.0.0.1",
        chrome_port: int = 9222,
        timeout: float = 5.0,
    ):
        """
        Raises:
            ValueError: If chrome_port is out of range
        """
        if not 1 <= chrome_port <= 65535:
            raise ValueError(f"chrome_port must be 1-65535, got {chrome_port}")

        self.chrome_host = chrome_host
        self.chrome_port = chrome_port
        self.timeout = timeout

    def list_targets(self, target_type: Optional[str] = None) -> List[Target]:
        """
        Fetch targets from the HTTP endpoint.

        Args:
            target_type: Filter by target type ("page", "iframe", ...)

        Raises:
            CDPError: If HTTP endpoint is unreachable or returns invalid data
        """
        endpoint_url = f"http://{self.chrome_host}:{self.chrome_port}/json"

        try:
            with urllib.request.urlopen(endpoint_url, timeout=self.timeout) as response:
                targets_data = json.loads(response.read())
        except urllib.error.URLError as e:
            raise CDPError(
                f"Failed to reach debugging endpoint at {endpoint_url}: {e}",
                details={
                    "chrome_host": self.chrome_host,
                    "chrome_port": self.chrome_port,
                },
            ) from e
        except json.JSONDecodeError as e:
            raise CDPError(
                f"Invalid JSON response from debugging endpoint: {e}",
                details={"endpoint": endpoint_url},
            ) from e

        targets = [Target(data) for data in targets_data]

        if target_type:
            targets = [t for t in targets if t.type == target_type]

        return targets

    def get_target_by_id(self, target_id: str) -> Target:
        """
        Find target by ID.

        Raises:
            CDPTargetNotFoundError: If no target has this ID
            CDPError: If HTTP endpoint is unreachable
        """
        for target in self.list_targets():
            if target.id == target_id:
                return target
        raise CDPTargetNotFoundError(
            f"Target not found: {target_id}",
            target_id=target_id,
            details={"chrome_port": self.chrome_port},
        )

    def connect_to_target(self, target: Target, *, timeout: float = 8.0) -> CDPConnection:
        """
        Create CDPConnection for given target (not yet connected).

        Raises:
            CDPError: If the target exposes no WebSocket URL
        """
        if not target.webSocketDebuggerUrl:
            raise CDPError(
                f"Target {target.id} has no WebSocket debugger URL",
                details={"target": target.to_dict()},
            )

        return CDPConnection(target.webSocketDebuggerUrl, timeout=timeout)
