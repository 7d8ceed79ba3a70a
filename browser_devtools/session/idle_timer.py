"""Inactivity timer for the browser session."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class IdleTimer:
    """Runs ``on_idle`` once after ``idle_seconds`` without a reset.

    Usage:
        timer = IdleTimer(300.0, manager.stop)
        timer.reset()   # on every qualifying tool call
        timer.cancel()  # on teardown
    """

    def __init__(self, idle_seconds: float, on_idle: Callable[[], Awaitable[None]]):
        self.idle_seconds = idle_seconds
        self._on_idle = on_idle
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    def reset(self) -> None:
        """Start or restart the countdown."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.idle_seconds, self._fire)

    def cancel(self) -> None:
        """Stop the countdown. A callback already running is left to finish."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        logger.info(f"Session idle for {self.idle_seconds}s, tearing down")
        self._task = asyncio.create_task(self._on_idle())
