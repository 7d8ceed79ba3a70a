"""Exception hierarchy for browser-devtools.

Two families live here:

- CDPError and subclasses: transport-level failures of the debugging-protocol
  connection (connect, command, timeout, target discovery).
- DevToolsError and subclasses: tool-level error kinds reported to the calling
  agent as ``{"error": {"code", "message", "details"}}``.

Tool handlers translate the first family into the second.
"""

import asyncio
from enum import Enum
from typing import Optional


class CDPError(Exception):
    """Base exception for all CDP-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CDPConnectionError(CDPError):
    """WebSocket connection failures."""

    pass


class ConnectionFailedError(CDPConnectionError):
    """Initial connection failed.

    Common causes: wrong port, browser not running, network issues.
    """

    pass


class ConnectionClosedError(CDPConnectionError):
    """Connection closed unexpectedly or used after disconnect."""

    pass


class CDPCommandError(CDPError):
    """Command execution failures."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandFailedError(CDPCommandError):
    """Browser returned an error response for the command.

    Example: DOM.getBoxModel on a node that is not rendered.
    """

    pass


class CDPTimeoutError(CDPError):
    """Command did not receive a response within the timeout period."""

    def __init__(
        self,
        message: str,
        command_method: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.command_method = command_method
        self.timeout = timeout

    def __str__(self):
        if self.command_method and self.timeout:
            return f"Command '{self.command_method}' timed out after {self.timeout}s"
        return self.message


class CDPTargetNotFoundError(CDPError):
    """Requested browser target cannot be found on the /json endpoint."""

    def __init__(
        self,
        message: str,
        target_id: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.target_id = target_id

    def __str__(self):
        if self.target_id:
            return f"Target not found: {self.target_id}"
        return self.message


class ErrorCode(str, Enum):
    """Error kinds reported to tool callers."""

    ALREADY_STARTED = "ALREADY_STARTED"
    SESSION_START_IN_PROGRESS = "SESSION_START_IN_PROGRESS"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    PLAYWRIGHT_LAUNCH_FAILED = "PLAYWRIGHT_LAUNCH_FAILED"
    HOOKS_START_FAILED = "HOOKS_START_FAILED"
    HOOKS_STOP_FAILED = "HOOKS_STOP_FAILED"
    NAVIGATION_TIMEOUT = "NAVIGATION_TIMEOUT"
    NAVIGATION_BLOCKED_BY_POLICY = "NAVIGATION_BLOCKED_BY_POLICY"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    CSS_DOMAIN_UNAVAILABLE = "CSS_DOMAIN_UNAVAILABLE"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    SHORTHAND_PROPERTY = "SHORTHAND_PROPERTY"
    JS_EXECUTION_ERROR = "JS_EXECUTION_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class DevToolsError(Exception):
    """Base exception for tool-level failures.

    Subclasses pin ``code``; the message and details are per-instance.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    code: ErrorCode = ErrorCode.UNEXPECTED_ERROR

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict:
        """Structured error payload returned to the agent."""
        error = {"code": self.code.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AlreadyStartedError(DevToolsError):
    """A session is already active and single-instance policy is on."""

    code = ErrorCode.ALREADY_STARTED


class StartInProgressError(DevToolsError):
    """Another session start has not finished yet."""

    code = ErrorCode.SESSION_START_IN_PROGRESS


class NoActiveSessionError(DevToolsError):
    code = ErrorCode.NO_ACTIVE_SESSION


class LaunchFailedError(DevToolsError):
    """Browser, context, page or debugging connection could not be created."""

    code = ErrorCode.PLAYWRIGHT_LAUNCH_FAILED


class HookStartError(DevToolsError):
    code = ErrorCode.HOOKS_START_FAILED


class HookStopError(DevToolsError):
    code = ErrorCode.HOOKS_STOP_FAILED


class NavigationTimeoutError(DevToolsError):
    code = ErrorCode.NAVIGATION_TIMEOUT


class NavigationBlockedError(DevToolsError):
    """Target URL origin is not in the configured allow-list."""

    code = ErrorCode.NAVIGATION_BLOCKED_BY_POLICY


class ElementNotFoundError(DevToolsError):
    code = ErrorCode.ELEMENT_NOT_FOUND


class CSSDomainUnavailableError(DevToolsError):
    """The CSS domain refused a style query for the node."""

    code = ErrorCode.CSS_DOMAIN_UNAVAILABLE


class QueryTimeoutError(DevToolsError):
    code = ErrorCode.QUERY_TIMEOUT


class ShorthandPropertyError(DevToolsError):
    """Cascade queries only accept longhand property names."""

    code = ErrorCode.SHORTHAND_PROPERTY


class JavaScriptExecutionError(DevToolsError):
    code = ErrorCode.JS_EXECUTION_ERROR


class UnexpectedError(DevToolsError):
    code = ErrorCode.UNEXPECTED_ERROR


def is_timeout(err: BaseException) -> bool:
    """Return True when a failure is a timeout, by type or by its text."""
    if isinstance(err, (CDPTimeoutError, asyncio.TimeoutError)):
        return True
    text = str(err).lower()
    return "timeout" in text or "timed out" in text
