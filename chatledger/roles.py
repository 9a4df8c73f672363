"""Sender → conversational role classification."""

from __future__ import annotations

from typing import Literal

Role = Literal["user", "assistant", "system"]

USER: Role = "user"
ASSISTANT: Role = "assistant"
SYSTEM: Role = "system"

VALID_ROLES: frozenset[str] = frozenset({USER, ASSISTANT, SYSTEM})
CONTEXT_ROLES: frozenset[str] = frozenset({USER, ASSISTANT})

USER_SENDERS = frozenset({"You", "User"})
ASSISTANT_SENDERS = frozenset({"Assistant", "Bot"})


def sender_to_role(sender: str) -> Role:
    """Map a display sender to its role.

    Matching is exact and case-sensitive. Anything outside the two recognized
    pairs (empty strings, new labels, typos) is a ``system`` message, so an
    unknown sender never blocks display.
    """
    if sender in USER_SENDERS:
        return USER
    if sender in ASSISTANT_SENDERS:
        return ASSISTANT
    return SYSTEM
