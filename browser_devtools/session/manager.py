"""
Session lifecycle: one browser, one page, one debugging connection.

States::

    absent --start--> starting --ok--> active --stop / idle--> absent
                          \\--failure--> absent

A SessionManager is built once by the server and handed to every tool
handler. Explicit stop, idle timeout and shutdown all go through ``stop``.
"""

import asyncio
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable, Deque, Dict, Optional

from playwright.async_api import async_playwright

from .hooks import HookContext, HookRunner, ModuleHookRunner, StopCallback, run_stop_callback
from .idle_timer import IdleTimer
from ..cdp.connection import CDPConnection
from ..cdp.targets import TargetDiscovery, find_free_port
from ..config import Configuration, ScenarioConfig
from ..exceptions import (
    AlreadyStartedError,
    DevToolsError,
    HookStartError,
    HookStopError,
    LaunchFailedError,
    NoActiveSessionError,
    StartInProgressError,
    UnexpectedError,
)
from ..logging_setup import log_with_context

logger = logging.getLogger(__name__)

DEBUG_HOST = "127.0.0.1"

# Domains the inspector needs; DOM must be enabled before CSS
REQUIRED_DOMAINS = ("DOM", "CSS")


class SessionState(str, Enum):
    ABSENT = "absent"
    STARTING = "starting"
    ACTIVE = "active"


@dataclass
class Session:
    """The live automation context.

    Resources are filled in as they are created, so a half-built session
    can be released with the same code as a complete one.
    """

    config: Configuration
    driver: Any = None
    browser: Any = None
    context: Any = None
    page: Any = None
    connection: Optional[CDPConnection] = None
    hook_stop: Optional[StopCallback] = None
    scenario: Optional[str] = None
    started_at: float = field(default_factory=time.time)
    last_used_at: float = field(default_factory=time.time)
    console_messages: Deque[Dict[str, Any]] = field(default_factory=deque)


class SessionManager:
    """Guards creation, use and teardown of the single browser session.

    Usage:
        manager = SessionManager(config)
        await manager.start(scenario="logged-in")
        async with manager.active_session() as session:
            ...
            manager.touch()
        await manager.stop()

    Attributes:
        config: Resolved configuration; each session gets a snapshot of it
        hook_runner: Runs scenario hooks (None when no hooks module is configured)
    """

    def __init__(
        self,
        config: Configuration,
        hook_runner: Optional[HookRunner] = None,
        driver_factory: Callable[[], Any] = async_playwright,
    ):
        self.config = config
        if hook_runner is None and config.hooks_module_path:
            hook_runner = ModuleHookRunner(config.hooks_module_path)
        self.hook_runner = hook_runner
        self._driver_factory = driver_factory

        self._state = SessionState.ABSENT
        self._session: Optional[Session] = None
        self._idle_timer: Optional[IdleTimer] = None
        # Held by start, stop and every page-affecting tool call
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def is_starting(self) -> bool:
        return self._state is SessionState.STARTING

    def get_session(self) -> Session:
        """The active session.

        Raises:
            NoActiveSessionError: If no session is active
        """
        if self._state is not SessionState.ACTIVE or self._session is None:
            raise NoActiveSessionError(
                "No active session. Call devtools_session_start first."
            )
        return self._session

    @asynccontextmanager
    async def active_session(self) -> AsyncIterator[Session]:
        """Hold the active session for the length of one tool call.

        Teardown waits for the block to exit, so a query never sees its
        connection closed underneath it. A call that was waiting while the
        session went away gets NoActiveSessionError.

        Raises:
            NoActiveSessionError: If no session is active
        """
        self.get_session()
        async with self._lock:
            yield self.get_session()

    def touch(self) -> None:
        """Record a qualifying tool call and restart the idle countdown."""
        if self._session is None or self._state is not SessionState.ACTIVE:
            return
        self._session.last_used_at = time.time()
        if self._idle_timer is not None:
            self._idle_timer.reset()

    async def start(self, scenario: Optional[str] = None, interactive: bool = False) -> Session:
        """Create the session and run the scenario hook.

        The state moves to starting before the first await, so a concurrent
        start is rejected even while an old session is being replaced.

        Args:
            scenario: Scenario name from the config; runs its hook once the page exists
            interactive: Launch a visible browser window

        Raises:
            StartInProgressError: If another start has not finished
            AlreadyStartedError: If active and single-instance policy is on
            HookStartError: If the scenario is unknown or its hook fails
            LaunchFailedError: If the browser or debugging connection cannot be created
        """
        if self._state is SessionState.STARTING:
            raise StartInProgressError("Session start is already in progress")
        if self._state is SessionState.ACTIVE and self.config.single_instance:
            raise AlreadyStartedError(
                "Session is already active. Call devtools_session_stop first."
            )

        scenario_config = self._resolve_scenario(scenario)

        config = self.config.snapshot()
        if interactive:
            config.headless = False

        self._state = SessionState.STARTING
        async with self._lock:
            if self._session is not None:
                logger.info("Replacing active session (single-instance policy off)")
                try:
                    await self._teardown()
                except HookStopError as e:
                    logger.error(f"Replaced session: {e.message} ({e.details.get('originalError')})")

            session = Session(config=config, scenario=scenario)
            try:
                await self._launch(session, scenario_config.device if scenario_config else None)
                if scenario_config is not None:
                    await self._run_setup_hook(session, scenario_config)
            except Exception as e:
                self._state = SessionState.ABSENT
                await self._release(session)
                if isinstance(e, DevToolsError):
                    raise
                raise UnexpectedError(
                    "Unexpected error during session start",
                    details={"originalError": str(e)},
                ) from e

            self._session = session
            self._state = SessionState.ACTIVE
            self._idle_timer = IdleTimer(config.idle_ms / 1000.0, self._stop_on_idle)
            self._idle_timer.reset()

        log_with_context(
            logger, logging.INFO, "Session active",
            scenario=scenario, headless=config.headless, idle_ms=config.idle_ms,
        )
        return session

    async def stop(self) -> None:
        """Tear the session down; a no-op when nothing is active.

        A stop issued while a start is in flight waits for that start and
        then tears down what it produced. Release steps run in order and
        each failure is logged and skipped. The hook's teardown callback
        runs last.

        Raises:
            HookStopError: If the hook's teardown callback raises
        """
        async with self._lock:
            await self._teardown()

    async def _teardown(self) -> None:
        """Release the current session. Caller holds the lock."""
        session = self._session
        if session is None:
            return

        self._session = None
        if self._state is SessionState.ACTIVE:
            self._state = SessionState.ABSENT
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None

        await self._release(session)
        logger.info("Session stopped")

        await run_stop_callback(session.hook_stop)

    async def _stop_on_idle(self) -> None:
        try:
            await self.stop()
        except HookStopError as e:
            logger.error(f"Idle teardown: {e.message} ({e.details.get('originalError')})")

    def _resolve_scenario(self, scenario: Optional[str]) -> Optional[ScenarioConfig]:
        if not scenario:
            return None
        scenario_config = self.config.scenarios.get(scenario)
        if scenario_config is None:
            raise HookStartError(
                f"Scenario '{scenario}' not found in configuration",
                details={"availableScenarios": sorted(self.config.scenarios)},
            )
        if self.hook_runner is None:
            raise HookStartError(
                f"Scenario '{scenario}' needs a hooks module but none is configured",
                details={"scenario": scenario},
            )
        return scenario_config

    async def _launch(self, session: Session, device: Optional[str]) -> None:
        """Create driver, browser, context, page and debugging connection."""
        config = session.config
        try:
            session.driver = await self._driver_factory().start()
            port = find_free_port(DEBUG_HOST)
            session.browser = await session.driver.chromium.launch(
                headless=config.headless,
                args=[f"--remote-debugging-port={port}"],
            )

            context_options: Dict[str, Any] = {}
            if device:
                if device not in session.driver.devices:
                    raise ValueError(f"Unknown device profile: {device}")
                context_options.update(session.driver.devices[device])
            if config.base_url:
                context_options["base_url"] = config.base_url
            if config.storage_state_path:
                context_options["storage_state"] = config.storage_state_path
            session.context = await session.browser.new_context(**context_options)
            session.page = await session.context.new_page()

            if config.console_enabled:
                session.console_messages = deque(maxlen=config.console_max_messages)
                session.page.on("console", lambda msg: _capture_console(session, msg))

            session.connection = await self._open_connection(session, port)
        except Exception as e:
            raise LaunchFailedError(
                "Failed to launch Playwright",
                details={"originalError": str(e)},
            ) from e

        log_with_context(logger, logging.DEBUG, "Browser launched", debugging_port=port, device=device)

    async def _open_connection(self, session: Session, port: int) -> CDPConnection:
        """Bind a CDP connection to the session's page via its target id."""
        probe = await session.context.new_cdp_session(session.page)
        try:
            info = await probe.send("Target.getTargetInfo")
        finally:
            await probe.detach()
        target_id = info["targetInfo"]["targetId"]

        discovery = TargetDiscovery(DEBUG_HOST, port)
        target = await asyncio.to_thread(discovery.get_target_by_id, target_id)

        connection = discovery.connect_to_target(target, timeout=session.config.query_ms / 1000.0)
        await connection.connect()
        session.connection = connection
        for domain in REQUIRED_DOMAINS:
            await connection.execute_command(f"{domain}.enable")
        return connection

    async def _run_setup_hook(self, session: Session, scenario_config: ScenarioConfig) -> None:
        context = HookContext(page=session.page, base_url=session.config.base_url)
        result = await self.hook_runner.invoke(scenario_config.use, context)
        session.hook_stop = result.stop
        logger.info(f"Scenario hook '{scenario_config.use}' finished")

    async def _release(self, session: Session) -> None:
        """Close whatever the session holds, in order, ignoring failures."""
        steps = (
            ("detach debugging connection", session.connection, "disconnect"),
            ("close page", session.page, "close"),
            ("close context", session.context, "close"),
            ("close browser", session.browser, "close"),
            ("stop driver", session.driver, "stop"),
        )
        for description, resource, method in steps:
            if resource is None:
                continue
            try:
                await getattr(resource, method)()
            except Exception as e:
                logger.warning(f"Failed to {description}: {e}")


def _capture_console(session: Session, message: Any) -> None:
    kind = message.type
    session.console_messages.append({
        "type": "warn" if kind == "warning" else kind,
        "text": message.text,
        "timestamp": int(time.time() * 1000),
        "location": message.location,
    })
