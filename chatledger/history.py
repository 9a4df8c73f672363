"""
Chat history ledger and context windowing.

``ChatHistory`` is the ordered, append-only store of one chat session.
``build_context`` derives the bounded slice of user/assistant turns that gets
handed to a language model; system notices never leave the ledger that way.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .exceptions import MalformedRecord
from .roles import CONTEXT_ROLES, VALID_ROLES, Role, sender_to_role

logger = logging.getLogger("chatledger")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
DEFAULT_MAX_CONTEXT_MESSAGES = 20

SeedMessage = tuple[str, str] | Mapping[str, str]


def format_timestamp(moment: datetime) -> str:
    """Render a datetime in the ledger's canonical second-precision form."""
    return moment.strftime(TIMESTAMP_FORMAT)


def is_canonical_timestamp(value: str) -> bool:
    """Return True if value is a real date written as ``YYYY-MM-DD HH:MM:SS``."""
    if not TIMESTAMP_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class ChatMessage:
    """One recorded chat message. Never mutated once stored."""

    timestamp: str
    sender: str
    text: str
    role: Role

    @property
    def created_at(self) -> datetime:
        """Timestamp parsed back into a naive local datetime."""
        return datetime.strptime(self.timestamp, TIMESTAMP_FORMAT)

    def to_dict(self) -> dict[str, str]:
        """Persistable record representation."""
        return {
            "timestamp": self.timestamp,
            "sender": self.sender,
            "text": self.text,
            "role": self.role,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, line: int | None = None) -> ChatMessage:
        """Rebuild a message from a persisted record, trusting its stored role.

        Raises:
            MalformedRecord: if a field is missing, not a string, the role is
                unknown, or the timestamp is not canonical.
        """
        if not isinstance(data, Mapping):
            raise MalformedRecord(f"expected an object, got {type(data).__name__}", line=line)

        fields: dict[str, str] = {}
        for name in ("timestamp", "sender", "text", "role"):
            if name not in data:
                raise MalformedRecord(f"missing field '{name}'", line=line)
            value = data[name]
            if not isinstance(value, str):
                raise MalformedRecord(
                    f"field '{name}' must be a string, got {type(value).__name__}", line=line
                )
            fields[name] = value

        if fields["role"] not in VALID_ROLES:
            raise MalformedRecord(f"unknown role '{fields['role']}'", line=line)
        if not is_canonical_timestamp(fields["timestamp"]):
            raise MalformedRecord(
                f"timestamp '{fields['timestamp']}' is not YYYY-MM-DD HH:MM:SS", line=line
            )

        return cls(
            timestamp=fields["timestamp"],
            sender=fields["sender"],
            text=fields["text"],
            role=fields["role"],  # type: ignore[arg-type]
        )


def build_context(messages: Iterable[ChatMessage], limit: int) -> list[ChatMessage]:
    """Return the most recent user/assistant messages, oldest first.

    System messages are dropped before counting, so interleaved notices do not
    eat into the window. A non-positive ``limit`` means no limit.
    """
    conversational = [message for message in messages if message.role in CONTEXT_ROLES]
    if limit <= 0 or len(conversational) <= limit:
        return conversational
    return conversational[-limit:]


def to_api_messages(messages: Iterable[ChatMessage]) -> list[dict[str, str]]:
    """Shape messages as ``{"role", "content"}`` dicts for chat-completion APIs."""
    return [{"role": message.role, "content": message.text} for message in messages]


def _seed_parts(seed: SeedMessage) -> tuple[str, str]:
    if isinstance(seed, Mapping):
        return str(seed["sender"]), str(seed["text"])
    sender, text = seed
    return sender, text


class ChatHistory:
    """Ordered message ledger for a single chat session.

    Insertion order is chronological order. Besides ``append`` the only
    mutations are ``replace_all`` and ``clear``; individual messages are never
    edited.

    Empty message text is accepted. Suppressing blank input is left to the
    caller (see ``ChatSession.submit``).
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        max_context_messages: int = DEFAULT_MAX_CONTEXT_MESSAGES,
    ) -> None:
        self._clock = clock
        self.max_context_messages = max_context_messages
        self._messages: list[ChatMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __repr__(self) -> str:
        return (
            f"ChatHistory(messages={len(self._messages)}, "
            f"max_context_messages={self.max_context_messages})"
        )

    def append(self, sender: str, text: str) -> ChatMessage:
        """Stamp, classify and store a new message; return it."""
        message = ChatMessage(
            timestamp=format_timestamp(self._clock()),
            sender=sender,
            text=text,
            role=sender_to_role(sender),
        )
        self._messages.append(message)
        logger.debug(
            "[ChatLedger] Appended %s message from %r (%d total).",
            message.role,
            sender,
            len(self._messages),
        )
        return message

    def get_all(self) -> list[ChatMessage]:
        """Snapshot of the full ledger in insertion order."""
        return list(self._messages)

    def replace_all(self, messages: Iterable[ChatMessage]) -> None:
        """Install a previously saved ledger verbatim.

        Roles and timestamps are kept exactly as given; nothing is re-derived.
        """
        self._messages = list(messages)
        logger.debug("[ChatLedger] Replaced ledger with %d messages.", len(self._messages))

    def clear(self, seed_messages: Iterable[SeedMessage] = ()) -> None:
        """Empty the ledger, then append each ``(sender, text)`` seed afresh."""
        self._messages = []
        for seed in seed_messages:
            sender, text = _seed_parts(seed)
            self.append(sender, text)
        logger.debug("[ChatLedger] Cleared ledger (%d seed messages).", len(self._messages))

    def build_context(self, limit: int | None = None) -> list[ChatMessage]:
        """Context window over this ledger.

        ``None`` falls back to ``max_context_messages``; zero or negative
        values return every user/assistant message.
        """
        effective = self.max_context_messages if limit is None else limit
        context = build_context(self._messages, effective)
        logger.debug(
            "[ChatLedger] Built context of %d messages (limit=%s).", len(context), effective
        )
        return context
