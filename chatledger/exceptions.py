"""Error types raised at the ChatLedger boundaries (import, config, CLI)."""

from __future__ import annotations


class ChatLedgerError(Exception):
    """Base class for every error ChatLedger raises on purpose."""


class MalformedRecord(ChatLedgerError, ValueError):
    """A persisted chat record could not be turned back into a ChatMessage."""

    def __init__(self, reason: str, *, line: int | None = None) -> None:
        self.reason = reason
        self.line = line
        if line is None:
            super().__init__(f"Malformed chat record: {reason}")
        else:
            super().__init__(f"Malformed chat record on line {line}: {reason}")


class ConfigError(ChatLedgerError):
    """Configuration file exists but cannot be parsed."""
