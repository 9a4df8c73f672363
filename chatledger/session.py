"""
Chat session: the owner of a ledger.

Holds the non-visual behavior of the chat widget: welcome seeding, blank input
suppression, message-sent notifications and "new conversation" resets. The UI
layer only renders what the session's history contains.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from .config import WidgetConfig
from .history import ChatHistory, ChatMessage

logger = logging.getLogger("chatledger.session")

USER_SENDER = "You"
ASSISTANT_SENDER = "Assistant"
SYSTEM_SENDER = "System"
STOCK_WELCOME_MESSAGE = "Welcome! I'm your AI assistant. How can I help you today?"

MessageSentListener = Callable[[str], None]


class ChatSession:
    """One conversation with its ledger, config and message-sent listeners."""

    def __init__(
        self,
        config: WidgetConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or WidgetConfig()
        self.history = ChatHistory(
            clock=clock,
            max_context_messages=self.config.max_context_messages,
        )
        self._listeners: list[MessageSentListener] = []

        welcome = self.config.welcome_message.strip() or STOCK_WELCOME_MESSAGE
        self.history.append(ASSISTANT_SENDER, welcome)
        self.history.append(
            ASSISTANT_SENDER,
            "Note: The assistant will only remember up to "
            f"{self.config.max_context_messages} recent messages for context.",
        )

    def add_listener(self, callback: MessageSentListener) -> None:
        """Call ``callback(text)`` after every accepted user message."""
        self._listeners.append(callback)

    def remove_listener(self, callback: MessageSentListener) -> None:
        """Stop notifying ``callback``; unknown callbacks are ignored."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def submit(self, text: str) -> ChatMessage | None:
        """Record user input and notify listeners.

        Whitespace-only input is dropped: nothing is appended and listeners are
        not called.
        """
        stripped = text.strip()
        if not stripped:
            return None

        message = self.history.append(USER_SENDER, stripped)
        for listener in list(self._listeners):
            listener(stripped)
        return message

    def receive(self, text: str, sender: str = ASSISTANT_SENDER) -> ChatMessage:
        """Record a reply once its text is available."""
        return self.history.append(sender, text)

    def notify(self, text: str) -> ChatMessage:
        """Record a system notice (shown to the user, never sent as context)."""
        return self.history.append(SYSTEM_SENDER, text)

    def new_conversation(self) -> None:
        """Drop the ledger and start over with fresh system notices."""
        self.history.clear(
            [
                (SYSTEM_SENDER, STOCK_WELCOME_MESSAGE),
                (
                    SYSTEM_SENDER,
                    "Note: The assistant will remember up to "
                    f"{self.config.max_context_messages} recent messages for context.",
                ),
            ]
        )
        logger.info("Started a new conversation.")

    def messages(self) -> list[ChatMessage]:
        return self.history.get_all()

    def load(self, messages: Iterable[ChatMessage]) -> None:
        """Restore a saved ledger as-is."""
        self.history.replace_all(messages)

    def context(self, limit: int | None = None) -> list[ChatMessage]:
        return self.history.build_context(limit)
