"""
ChatLedger: the in-memory message ledger and context-window policy behind a chat widget.

It keeps the ordered history of a chat session, classifies senders into
conversational roles, and derives the bounded slice of user/assistant turns to
hand to a language model. The Toga widget and demo host live in
``examples/toga_chat_demo``.
"""

from .config import WidgetConfig, load_config
from .exceptions import ChatLedgerError, ConfigError, MalformedRecord
from .history import ChatHistory, ChatMessage, build_context, to_api_messages
from .responder import SimulatedResponder
from .roles import sender_to_role
from .session import ChatSession
from .transcript import export_jsonl, export_markdown, export_text, load_jsonl

__all__ = [
    "ChatHistory",
    "ChatLedgerError",
    "ChatMessage",
    "ChatSession",
    "ConfigError",
    "MalformedRecord",
    "SimulatedResponder",
    "WidgetConfig",
    "build_context",
    "export_jsonl",
    "export_markdown",
    "export_text",
    "load_config",
    "load_jsonl",
    "sender_to_role",
    "to_api_messages",
]
