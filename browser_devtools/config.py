"""Configuration management for browser-devtools.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

The config file is JSON with camelCase sections, for example::

    {
      "playwright": {"baseURL": "http://localhost:3000", "headless": true},
      "hooks": {
        "modulePath": "./hooks.py",
        "envPath": "./.env",
        "scenarios": {
          "logged-in": {"use": "start_logged_in", "description": "Signed-in user"}
        }
      },
      "policy": {"singleInstance": true, "idleMs": 300000,
                 "allowedOrigins": ["http://localhost:3000"]},
      "timeouts": {"navigationMs": 15000, "queryMs": 8000},
      "console": {"enabled": true, "maxMessages": 1000}
    }

Relative paths in the file are resolved against the file's directory.

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("devtools.config.json", required=True)
    >>> config.load_from_env()
    >>> config.merge(headless=False)  # CLI overrides
"""

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlsplit

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a required config file is missing or malformed."""


@dataclass
class ScenarioConfig:
    """Named startup routine backed by a function in the hooks module.

    Attributes:
        use: Function name to call from the hooks module
        description: Shown to the agent when choosing a scenario
        device: Optional Playwright device profile (e.g. "iPhone 13")
    """

    use: str
    description: Optional[str] = None
    device: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"use": self.use, "description": self.description, "device": self.device}


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (DEVTOOLS_* prefix)
    3. Config file (JSON)
    4. Default values

    Attributes:
        headless: Launch the browser without a window (default: True)
        base_url: Base URL for relative navigation and hooks
        storage_state_path: Playwright storage state file for the context
        hooks_module_path: Python file with scenario hook functions
        scenarios: Scenario name -> ScenarioConfig
        single_instance: Reject start while a session is active (default: True)
        idle_ms: Idle teardown delay in milliseconds (default: 300000)
        allowed_origins: Navigation allow-list (None = allow everything)
        navigation_ms: Navigation timeout in milliseconds (default: 15000)
        query_ms: Element / style query timeout in milliseconds (default: 8000)
        console_enabled: Capture page console messages (default: True)
        console_max_messages: Console buffer size (default: 1000)
        log_level: Logging level (default: "INFO")
        log_format: Log output format "text" or "json" (default: "text")
    """

    DEFAULTS = {
        "headless": True,
        "base_url": None,
        "storage_state_path": None,
        "hooks_module_path": None,
        "single_instance": True,
        "idle_ms": 300_000,
        "allowed_origins": None,
        "navigation_ms": 15_000,
        "query_ms": 8_000,
        "console_enabled": True,
        "console_max_messages": 1000,
        "log_level": "INFO",
        "log_format": "text",
    }

    # (section, key) in the JSON file -> attribute name
    FILE_KEYS = {
        ("playwright", "baseURL"): "base_url",
        ("playwright", "headless"): "headless",
        ("playwright", "storageStatePath"): "storage_state_path",
        ("hooks", "modulePath"): "hooks_module_path",
        ("policy", "singleInstance"): "single_instance",
        ("policy", "idleMs"): "idle_ms",
        ("policy", "allowedOrigins"): "allowed_origins",
        ("timeouts", "navigationMs"): "navigation_ms",
        ("timeouts", "queryMs"): "query_ms",
        ("console", "enabled"): "console_enabled",
        ("console", "maxMessages"): "console_max_messages",
        ("logging", "level"): "log_level",
        ("logging", "format"): "log_format",
    }

    PATH_KEYS = ("storage_state_path", "hooks_module_path")

    def __init__(self):
        """Initialize configuration with default values."""
        self.headless: bool = self.DEFAULTS["headless"]
        self.base_url: Optional[str] = self.DEFAULTS["base_url"]
        self.storage_state_path: Optional[str] = self.DEFAULTS["storage_state_path"]
        self.hooks_module_path: Optional[str] = self.DEFAULTS["hooks_module_path"]
        self.scenarios: Dict[str, ScenarioConfig] = {}
        self.single_instance: bool = self.DEFAULTS["single_instance"]
        self.idle_ms: int = self.DEFAULTS["idle_ms"]
        self.allowed_origins: Optional[List[str]] = self.DEFAULTS["allowed_origins"]
        self.navigation_ms: int = self.DEFAULTS["navigation_ms"]
        self.query_ms: int = self.DEFAULTS["query_ms"]
        self.console_enabled: bool = self.DEFAULTS["console_enabled"]
        self.console_max_messages: int = self.DEFAULTS["console_max_messages"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str, required: bool = False) -> None:
        """Load configuration from a JSON file.

        Args:
            file_path: Path to the config file
            required: Raise instead of warning when the file is missing or invalid

        Raises:
            ConfigurationError: If required and the file cannot be loaded
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            if required:
                raise ConfigurationError(f"Config file not found: {path}")
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            if required:
                raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")

        self._merge_file_data(data, path.parent)
        logger.info(f"Loaded configuration from {path}")

    def _merge_file_data(self, data: dict, config_dir: Path) -> None:
        """Flatten the sectioned file layout onto attributes."""
        flat: Dict[str, Any] = {}
        for (section, key), attr_name in self.FILE_KEYS.items():
            section_data = data.get(section) or {}
            if key in section_data:
                flat[attr_name] = section_data[key]

        for attr_name in self.PATH_KEYS:
            if flat.get(attr_name):
                flat[attr_name] = str((config_dir / flat[attr_name]).resolve())

        self._merge_dict(flat)

        hooks = data.get("hooks") or {}
        for name, scenario in (hooks.get("scenarios") or {}).items():
            if not isinstance(scenario, dict) or "use" not in scenario:
                logger.warning(f"Ignoring scenario {name!r}: missing 'use'")
                continue
            self.scenarios[name] = ScenarioConfig(
                use=scenario["use"],
                description=scenario.get("description"),
                device=scenario.get("device"),
            )

        env_path = hooks.get("envPath")
        if env_path:
            resolved = (config_dir / env_path).resolve()
            if load_dotenv(resolved):
                logger.debug(f"Loaded hook environment from {resolved}")
            else:
                logger.warning(f"Hook env file not loaded: {resolved}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Environment variables use DEVTOOLS_ prefix:
        - DEVTOOLS_HEADLESS
        - DEVTOOLS_BASE_URL
        - DEVTOOLS_ALLOWED_ORIGINS (comma separated)
        - DEVTOOLS_IDLE_MS
        - DEVTOOLS_NAVIGATION_MS
        - DEVTOOLS_QUERY_MS
        - DEVTOOLS_LOG_LEVEL
        - DEVTOOLS_LOG_FORMAT

        Invalid values are ignored with a warning log.
        """
        env_mappings = {
            "DEVTOOLS_HEADLESS": ("headless", _to_bool),
            "DEVTOOLS_BASE_URL": ("base_url", str),
            "DEVTOOLS_ALLOWED_ORIGINS": ("allowed_origins", _to_list),
            "DEVTOOLS_IDLE_MS": ("idle_ms", int),
            "DEVTOOLS_NAVIGATION_MS": ("navigation_ms", int),
            "DEVTOOLS_QUERY_MS": ("query_ms", int),
            "DEVTOOLS_LOG_LEVEL": ("log_level", str),
            "DEVTOOLS_LOG_FORMAT": ("log_format", str),
        }

        for env_var, (attr_name, type_converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = type_converter(value)
                    setattr(self, attr_name, converted_value)
                    logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} ({e})")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        Example:
            >>> config.merge(headless=False, query_ms=2000)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict) -> None:
        for key, value in data.items():
            if hasattr(self, key) and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def snapshot(self) -> "Configuration":
        """Independent copy handed to a session; later merges do not leak in."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        data = {key: getattr(self, key) for key in self.DEFAULTS}
        data["scenarios"] = {name: s.to_dict() for name, s in self.scenarios.items()}
        return data

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"


def is_origin_allowed(url: str, allowed_origins: Optional[List[str]] = None) -> bool:
    """Check a URL against the origin allow-list.

    An empty or missing list allows everything. URLs without a scheme and
    host cannot be matched to an origin and are rejected.
    """
    if not allowed_origins:
        return True

    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return False
    origin = f"{parts.scheme}://{parts.netloc}".lower()
    return origin in {o.rstrip("/").lower() for o in allowed_origins}


def resolve_url(url: str, base_url: Optional[str] = None) -> str:
    """Resolve a possibly relative URL against the configured base URL."""
    if url.startswith(("http://", "https://")) or not base_url:
        return url
    return urljoin(base_url, url)
