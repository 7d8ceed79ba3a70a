"""Scenario hooks: app-specific setup run when a session starts.

A hooks module is a plain Python file exposing functions (sync or async)
that take a HookContext and may return a teardown callback::

    async def start_logged_in(ctx):
        await ctx.page.goto(ctx.base_url + "/login")
        ...
        return {"stop": cleanup}

The session manager only talks to the HookRunner interface, so other
loading strategies can replace ModuleHookRunner.
"""

import importlib.util
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Union

from ..exceptions import HookStartError, HookStopError

logger = logging.getLogger(__name__)

StopCallback = Callable[[], Union[None, Awaitable[None]]]


@dataclass
class HookContext:
    """What a hook function receives: the live page and the base URL."""

    page: Any
    base_url: Optional[str] = None


@dataclass
class HookResult:
    stop: Optional[StopCallback] = None

    @classmethod
    def coerce(cls, value: Any) -> "HookResult":
        """Accept None, a HookResult, a {"stop": fn} dict or an object with .stop."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            stop = value.get("stop")
        else:
            stop = getattr(value, "stop", None)
        if stop is not None and not callable(stop):
            raise TypeError(f"hook 'stop' must be callable, got {type(stop).__name__}")
        return cls(stop=stop)


class HookRunner(Protocol):
    async def invoke(self, name: str, context: HookContext) -> HookResult:
        ...


class ModuleHookRunner:
    """Loads hook functions from a Python file on first use.

    Attributes:
        module_path: Path of the hooks file
    """

    def __init__(self, module_path: str):
        self.module_path = Path(module_path)
        self._module: Optional[ModuleType] = None

    def load(self) -> ModuleType:
        """Import the hooks file once.

        Raises:
            HookStartError: If the file cannot be imported
        """
        if self._module is not None:
            return self._module

        try:
            spec = importlib.util.spec_from_file_location(
                f"devtools_hooks_{self.module_path.stem}", self.module_path
            )
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot load a module from {self.module_path}")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            raise HookStartError(
                f"Failed to load hooks module from {self.module_path}",
                details={"originalError": str(e)},
            ) from e

        logger.info(f"Loaded hooks module {self.module_path}")
        self._module = module
        return module

    def available_hooks(self) -> List[str]:
        module = self.load()
        return sorted(
            name for name, value in vars(module).items()
            if inspect.isfunction(value) and not name.startswith("_")
        )

    async def invoke(self, name: str, context: HookContext) -> HookResult:
        """Run one hook function.

        Raises:
            HookStartError: If the function is missing, raises, or returns garbage
        """
        module = self.load()
        hook_fn = getattr(module, name, None)
        if not callable(hook_fn):
            raise HookStartError(
                f"Hook function '{name}' not found or not a function in hooks module",
                details={"availableHooks": self.available_hooks()},
            )

        try:
            result = hook_fn(context)
            if inspect.isawaitable(result):
                result = await result
            return HookResult.coerce(result)
        except Exception as e:
            raise HookStartError(
                f"Hook function '{name}' threw an error",
                details={"originalError": str(e)},
            ) from e


async def run_stop_callback(stop: Optional[StopCallback]) -> None:
    """Run a hook's teardown callback, if any.

    Raises:
        HookStopError: If the callback raises
    """
    if stop is None:
        return
    try:
        result = stop()
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        raise HookStopError(
            "Hook stop function threw an error",
            details={"originalError": str(e)},
        ) from e
