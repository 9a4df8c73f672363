"""Widget/session settings loaded from an optional TOML file."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .history import DEFAULT_MAX_CONTEXT_MESSAGES

logger = logging.getLogger("chatledger.config")

CONFIG_ENV_VAR = "CHATLEDGER_CONFIG"
CONFIG_TABLE = "chatledger"
DEFAULT_TITLE = "AI Assistant"
DEFAULT_WELCOME_MESSAGE = "Hello. I am your assistant. How can I help you today?"
DEFAULT_RESPONSE_DELAY_SECONDS = 1.5


def _positive_int(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def _non_negative_float(value: Any, fallback: float) -> float:
    if isinstance(value, bool):
        return fallback
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed >= 0 else fallback


@dataclass
class WidgetConfig:
    """User-facing knobs for a chat session and its widget."""

    title: str = DEFAULT_TITLE
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    max_context_messages: int = DEFAULT_MAX_CONTEXT_MESSAGES
    response_delay_seconds: float = DEFAULT_RESPONSE_DELAY_SECONDS
    export_directory: str = "."

    def to_dict(self) -> dict[str, Any]:
        """Persistable config representation."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WidgetConfig:
        """Load config with safe defaults for missing or unusable values."""
        title = str(data.get("title", DEFAULT_TITLE)).strip() or DEFAULT_TITLE
        return cls(
            title=title,
            welcome_message=str(data.get("welcome_message", DEFAULT_WELCOME_MESSAGE)),
            max_context_messages=_positive_int(
                data.get("max_context_messages"), DEFAULT_MAX_CONTEXT_MESSAGES
            ),
            response_delay_seconds=_non_negative_float(
                data.get("response_delay_seconds"), DEFAULT_RESPONSE_DELAY_SECONDS
            ),
            export_directory=str(data.get("export_directory", ".")) or ".",
        )


def default_config_path() -> Path | None:
    """Config file named by ``CHATLEDGER_CONFIG``, if set."""
    raw = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(raw).expanduser() if raw else None


def load_config(path: str | Path | None = None) -> WidgetConfig:
    """Read the ``[chatledger]`` table of a TOML file.

    A missing file (or no path at all) yields the defaults. A file that exists
    but is not valid TOML raises ``ConfigError``.
    """
    target = Path(path) if path is not None else default_config_path()
    if target is None or not target.is_file():
        if target is not None:
            logger.debug("Config file %s not found; using defaults.", target)
        return WidgetConfig()

    try:
        with target.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {target}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read {target}: {exc}") from exc

    table = document.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{CONFIG_TABLE}] in {target} must be a table")
    logger.info("Loaded chat config from %s", target)
    return WidgetConfig.from_dict(table)
