"""Reusable Toga chat widget backed by a ChatLedger session."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import toga
from toga.style import Pack
from toga.style.pack import COLUMN, HIDDEN, ROW, VISIBLE

from chatledger import ChatMessage, ChatSession
from chatledger.exceptions import MalformedRecord
from chatledger.transcript import default_export_filename, export_as, load_jsonl

logger = logging.getLogger("chatledger_demo.widget")

FONT_SIZE_TITLE = 14
FONT_SIZE_BODY = 11
COLOR_ACCENT = "#0078D4"
COLOR_TEXT_MUTED = "#605E5C"
COLOR_PANEL_BG = "#F3F2F1"

SENDER_MARKERS = {
    "user": "▶",
    "assistant": "◆",
    "system": "·",
}


def display_time(message: ChatMessage) -> str:
    """Time-of-day part of the canonical timestamp (``HH:MM:SS``)."""
    return message.timestamp[11:19]


def render_transcript(messages: Iterable[ChatMessage]) -> str:
    """Render messages into the read-only transcript pane."""
    blocks: list[str] = []
    for message in messages:
        marker = SENDER_MARKERS.get(message.role, SENDER_MARKERS["system"])
        header = f"{marker} {message.sender} | {display_time(message)}"
        body = f"({message.text})" if message.role == "system" else message.text
        blocks.append(f"{header}\n{body}")
    return "\n\n".join(blocks)


class ChatWidget:
    """Message display, input box, progress indicator and New/Load/Export controls.

    The widget never stores messages itself; it renders ``session.history``.
    Hosts listen for sent messages with ``session.add_listener``.
    """

    def __init__(self, session: ChatSession, title: str | None = None) -> None:
        self.session = session
        self._build(title or session.config.title)
        self.refresh()

    def _build(self, title: str) -> None:
        self.title_label = toga.Label(
            title,
            style=Pack(flex=1, font_size=FONT_SIZE_TITLE, font_weight="bold", margin=(4, 0)),
        )
        self.new_button = toga.Button(
            "New", on_press=self.on_new_pressed, style=Pack(margin=(0, 0, 0, 6))
        )
        self.load_button = toga.Button(
            "Load", on_press=self.on_load_pressed, style=Pack(margin=(0, 0, 0, 6))
        )
        self.export_button = toga.Button(
            "Export", on_press=self.on_export_pressed, style=Pack(margin=(0, 0, 0, 6))
        )
        header = toga.Box(style=Pack(direction=ROW, align_items="center", margin_bottom=5))
        header.add(self.title_label)
        header.add(self.new_button)
        header.add(self.load_button)
        header.add(self.export_button)

        self.transcript_view = toga.MultilineTextInput(
            readonly=True,
            placeholder="Chat history will appear here...",
            style=Pack(flex=1, font_size=FONT_SIZE_BODY),
        )
        self.progress_bar = toga.ProgressBar(
            max=None, style=Pack(margin=(6, 0), visibility=HIDDEN)
        )

        self.input_box = toga.TextInput(
            placeholder="Type your query here and press Enter or click Send...",
            on_confirm=self.on_send,
            style=Pack(flex=1),
        )
        self.send_button = toga.Button(
            "Send",
            on_press=self.on_send,
            style=Pack(margin_left=6, background_color=COLOR_ACCENT, color="#FFFFFF"),
        )
        input_row = toga.Box(style=Pack(direction=ROW, margin_top=5))
        input_row.add(self.input_box)
        input_row.add(self.send_button)

        self.root = toga.Box(style=Pack(direction=COLUMN, flex=1, margin=8))
        self.root.add(header)
        self.root.add(self.transcript_view)
        self.root.add(self.progress_bar)
        self.root.add(input_row)

    # -- display -----------------------------------------------------------

    def refresh(self) -> None:
        """Re-render the transcript from the session ledger."""
        self.transcript_view.value = render_transcript(self.session.messages())
        self.transcript_view.scroll_to_bottom()

    def append_message(self, sender: str, text: str) -> ChatMessage:
        """Record a message in the session and show it."""
        message = self.session.history.append(sender, text)
        self.refresh()
        return message

    def set_history(self, messages: Iterable[ChatMessage]) -> None:
        self.session.load(messages)
        self.refresh()

    def clear_history(self) -> None:
        self.session.new_conversation()
        self.refresh()

    def build_context(self, limit: int | None = None) -> list[ChatMessage]:
        return self.session.context(limit)

    def set_title(self, title: str) -> None:
        self.title_label.text = title

    # -- progress & input ------------------------------------------------

    def show_progress(self) -> None:
        self.progress_bar.style.visibility = VISIBLE
        self.progress_bar.start()

    def hide_progress(self) -> None:
        self.progress_bar.stop()
        self.progress_bar.style.visibility = HIDDEN

    @property
    def input_text(self) -> str:
        return self.input_box.value or ""

    def clear_input(self) -> None:
        self.input_box.value = ""

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_box.enabled = enabled
        self.send_button.enabled = enabled

    # -- handlers ----------------------------------------------------------

    def on_send(self, widget: toga.Widget) -> None:
        """Submit input; blank input is ignored by the session."""
        del widget
        message = self.session.submit(self.input_text)
        if message is None:
            return
        self.clear_input()
        self.refresh()

    async def on_new_pressed(self, widget: toga.Widget) -> None:
        """Confirm, then start a new conversation."""
        del widget
        confirmed = await self.root.window.dialog(
            toga.ConfirmDialog(
                "New Conversation",
                "Are you sure you want to start a new conversation? "
                "Current chat history will be cleared.",
            )
        )
        if confirmed:
            self.clear_history()

    async def on_load_pressed(self, widget: toga.Widget) -> None:
        """Restore a ledger previously saved as JSONL."""
        del widget
        source = await self.root.window.dialog(
            toga.OpenFileDialog("Load Chat History", file_types=["jsonl"])
        )
        if not source:
            return
        try:
            messages = load_jsonl(Path(str(source)))
        except (MalformedRecord, OSError) as exc:
            logger.warning("Could not load %s: %s", source, exc)
            await self.root.window.dialog(toga.ErrorDialog("Load Error", str(exc)))
            return
        self.set_history(messages)

    async def on_export_pressed(self, widget: toga.Widget) -> None:
        """Export the ledger as .txt, .md or .jsonl depending on the chosen name."""
        del widget
        window = self.root.window
        messages = self.session.messages()
        if not messages:
            await window.dialog(toga.InfoDialog("Export Chat", "No chat history to export."))
            return

        target = await window.dialog(
            toga.SaveFileDialog(
                "Export Chat History",
                suggested_filename=default_export_filename(),
                file_types=["txt", "md", "jsonl"],
            )
        )
        if not target:
            return

        path = Path(str(target))
        suffix = path.suffix.lower().lstrip(".")
        fmt = suffix if suffix in {"txt", "md", "jsonl"} else "txt"
        if fmt == "txt" and path.suffix.lower() != ".txt":
            path = path.with_suffix(".txt")
        try:
            written = export_as(messages, path, fmt)
        except OSError as exc:
            logger.warning("Export to %s failed: %s", path, exc)
            await window.dialog(
                toga.ErrorDialog("Export Error", f"Failed to open file for writing:\n{exc}")
            )
            return
        await window.dialog(
            toga.InfoDialog(
                "Export Complete", f"Chat history exported successfully to:\n{written}"
            )
        )
