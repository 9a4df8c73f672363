"""Demo host window for the ChatLedger chat widget.

Highlights:
- simulated asynchronous assistant replies (progress indicator + disabled input)
- buttons to add user/assistant/system messages directly
- history and context inspection (logged, summarized in a dialog)
- New/Load/Export controls provided by the widget itself
"""

from __future__ import annotations

import asyncio
import logging

import toga
from toga.style import Pack
from toga.style.pack import COLUMN, ROW

from chatledger import ChatSession, SimulatedResponder, load_config
from chatledger.config import DEFAULT_TITLE, DEFAULT_WELCOME_MESSAGE

from .widget import COLOR_PANEL_BG, COLOR_TEXT_MUTED, ChatWidget

logger = logging.getLogger("chatledger_demo")

CONTEXT_PREVIEW_LIMIT = 5
DEMO_WELCOME = (
    "Hello! I'm a simulated AI assistant. "
    "Try sending me messages and explore the demo buttons below!"
)
DESCRIPTION = (
    "This demo shows the features of the chat widget:\n"
    "• Formatted chat display with timestamps\n"
    "• Message sending and receiving\n"
    "• Progress indicator for async operations\n"
    "• Chat history management and context building"
)


class ChatLedgerDemoApp(toga.App):
    """Toga desktop app that drives a ChatWidget with a simulated assistant."""

    def startup(self) -> None:
        """Build UI and wire the session listener."""
        config = load_config()
        if config.title == DEFAULT_TITLE:
            config.title = "AI Assistant Demo"
        if config.welcome_message == DEFAULT_WELCOME_MESSAGE:
            config.welcome_message = DEMO_WELCOME

        self.session = ChatSession(config)
        self.responder = SimulatedResponder(delay_seconds=config.response_delay_seconds)
        self.chat_widget = ChatWidget(self.session)
        self.session.add_listener(self.on_message_sent)

        self.progress_visible = False
        self.message_counter = 0
        self._pending: set[asyncio.Task] = set()

        self.main_window = toga.MainWindow(title="Chat Widget Demonstration", size=(960, 720))
        self.main_window.content = self._build_ui()
        self.main_window.show()

    def _build_ui(self) -> toga.Box:
        title = toga.Label(
            "Chat Widget Demo Application",
            style=Pack(font_size=14, font_weight="bold", text_align="center", margin=10),
        )
        description = toga.Label(DESCRIPTION, style=Pack(color=COLOR_TEXT_MUTED, margin=(5, 10)))

        def button(label: str, handler) -> toga.Button:
            return toga.Button(label, on_press=handler, style=Pack(flex=1, margin=3))

        row1 = toga.Box(style=Pack(direction=ROW))
        row1.add(button("Simulate AI Response (2s delay)", self.on_simulate_response))
        row1.add(button("Toggle Progress Indicator", self.on_toggle_progress))

        row2 = toga.Box(style=Pack(direction=ROW))
        row2.add(button("Show Chat History", self.on_show_history))
        row2.add(button(f"Show Context (last {CONTEXT_PREVIEW_LIMIT})", self.on_show_context))
        row2.add(button("Clear History", self.on_clear_history))

        row3 = toga.Box(style=Pack(direction=ROW))
        row3.add(button("Add User Message", self.on_add_user_message))
        row3.add(button("Add Assistant Message", self.on_add_assistant_message))
        row3.add(button("Add System Message", self.on_add_system_message))

        controls = toga.Box(style=Pack(direction=COLUMN, margin=8, background_color=COLOR_PANEL_BG))
        controls.add(toga.Label("Demo Controls", style=Pack(font_weight="bold", margin=3)))
        controls.add(row1)
        controls.add(row2)
        controls.add(row3)

        self.status_label = toga.Label(
            "Ready - Try typing a message or click the demo buttons",
            style=Pack(margin=5, background_color=COLOR_PANEL_BG),
        )

        root = toga.Box(style=Pack(direction=COLUMN, flex=1))
        root.add(title)
        root.add(description)
        root.add(self.chat_widget.root)
        root.add(controls)
        root.add(self.status_label)
        return root

    def _set_status(self, text: str) -> None:
        self.status_label.text = text

    def _track(self, coro) -> None:
        """Keep a reference to fire-and-forget tasks until they finish."""
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _begin_wait(self) -> None:
        self.chat_widget.show_progress()
        self.chat_widget.set_input_enabled(False)

    def _end_wait(self) -> None:
        self.chat_widget.hide_progress()
        self.chat_widget.set_input_enabled(True)
        self.progress_visible = False

    # -- simulated replies -------------------------------------------------

    def on_message_sent(self, message: str) -> None:
        """Session listener: answer every user message after a delay."""
        self._set_status(f'Message sent: "{message}"')
        logger.info("User message: %s", message)
        self._begin_wait()
        self._track(self._reply(message))

    async def _reply(self, message: str) -> None:
        try:
            response = await self.responder.respond(message)
            self.chat_widget.append_message("Assistant", response)
            self._set_status("Response received")
        finally:
            self._end_wait()

    async def on_simulate_response(self, widget: toga.Widget) -> None:
        del widget
        self._set_status("Simulating async AI response...")
        self._begin_wait()
        try:
            response = await self.responder.background_response()
            self.chat_widget.append_message("Assistant", response)
            self._set_status("Simulated response complete")
        finally:
            self._end_wait()

    def on_toggle_progress(self, widget: toga.Widget) -> None:
        del widget
        self.progress_visible = not self.progress_visible
        if self.progress_visible:
            self.chat_widget.show_progress()
            self._set_status("Progress indicator shown")
        else:
            self.chat_widget.hide_progress()
            self._set_status("Progress indicator hidden")

    # -- inspection --------------------------------------------------------

    async def on_show_history(self, widget: toga.Widget) -> None:
        del widget
        history = self.session.messages()
        lines = [f"=== Chat History ({len(history)} messages) ==="]
        lines.extend(
            f"[{msg.timestamp}] {msg.sender} ({msg.role}): {msg.text}" for msg in history
        )
        logger.info("\n".join(lines))
        await self.main_window.dialog(
            toga.InfoDialog(
                "Chat History",
                f"Chat history has {len(history)} messages.\n"
                "Check the console/debug output for details.",
            )
        )
        self._set_status(f"Displayed {len(history)} messages in console")

    async def on_show_context(self, widget: toga.Widget) -> None:
        del widget
        context = self.chat_widget.build_context(CONTEXT_PREVIEW_LIMIT)
        lines = [f"=== Context Messages (last {CONTEXT_PREVIEW_LIMIT} user/assistant) ==="]
        lines.extend(f"[{msg.role}] {msg.sender}: {msg.text}" for msg in context)
        logger.info("\n".join(lines))
        await self.main_window.dialog(
            toga.InfoDialog(
                "Context Messages",
                f"Built context with {len(context)} messages (user/assistant only).\n"
                "Check the console for details.",
            )
        )
        self._set_status(f"Built context with {len(context)} messages")

    # -- direct edits ------------------------------------------------------

    def on_clear_history(self, widget: toga.Widget) -> None:
        del widget
        self.chat_widget.clear_history()
        self.message_counter = 0
        self._set_status("Chat history cleared")

    def on_add_user_message(self, widget: toga.Widget) -> None:
        del widget
        self.message_counter += 1
        self.chat_widget.append_message("You", f"This is demo user message #{self.message_counter}")
        self._set_status("Added user message")

    def on_add_assistant_message(self, widget: toga.Widget) -> None:
        del widget
        self.message_counter += 1
        self.chat_widget.append_message(
            "Assistant",
            f"This is demo assistant response #{self.message_counter}. "
            "I can help you with various tasks!",
        )
        self._set_status("Added assistant message")

    def on_add_system_message(self, widget: toga.Widget) -> None:
        del widget
        self.chat_widget.append_message(
            "System", "This is a system notification message. It is shown in parentheses."
        )
        self._set_status("Added system message")

    def on_exit(self) -> bool:
        """Cancel pending simulated replies on shutdown."""
        for task in list(self._pending):
            task.cancel()
        return True


def main() -> ChatLedgerDemoApp:
    """Briefcase entrypoint."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    return ChatLedgerDemoApp(
        formal_name="ChatLedger Demo",
        app_id="com.chatledger.demo",
    )
