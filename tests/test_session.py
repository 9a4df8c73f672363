from unittest.mock import MagicMock

from chatledger import ChatSession, WidgetConfig
from chatledger.session import STOCK_WELCOME_MESSAGE


class TestSeeding:
    def test_welcome_and_note_from_config(self, clock):
        session = ChatSession(WidgetConfig(welcome_message="Hi!", max_context_messages=7), clock)
        welcome, note = session.messages()
        assert (welcome.sender, welcome.text, welcome.role) == ("Assistant", "Hi!", "assistant")
        assert note.text == (
            "Note: The assistant will only remember up to 7 recent messages for context."
        )

    def test_blank_welcome_uses_stock_text(self, clock):
        session = ChatSession(WidgetConfig(welcome_message="   "), clock)
        assert session.messages()[0].text == STOCK_WELCOME_MESSAGE

    def test_history_uses_configured_context_size(self, clock):
        session = ChatSession(WidgetConfig(max_context_messages=2), clock)
        for i in range(4):
            session.submit(f"q{i}")
        assert [m.text for m in session.context()] == ["q2", "q3"]


class TestSubmit:
    def test_appends_user_message_and_notifies(self, clock):
        session = ChatSession(clock=clock)
        listener = MagicMock()
        session.add_listener(listener)

        message = session.submit("  hello  ")

        assert message is not None
        assert (message.sender, message.text, message.role) == ("You", "hello", "user")
        assert session.messages()[-1] == message
        listener.assert_called_once_with("hello")

    def test_blank_input_is_suppressed(self, clock):
        session = ChatSession(clock=clock)
        listener = MagicMock()
        session.add_listener(listener)
        before = session.messages()

        assert session.submit("") is None
        assert session.submit(" \n\t ") is None

        assert session.messages() == before
        listener.assert_not_called()

    def test_listener_sees_message_already_in_history(self, clock):
        session = ChatSession(clock=clock)
        seen = []
        session.add_listener(lambda text: seen.append(session.messages()[-1].text == text))
        session.submit("question")
        assert seen == [True]

    def test_remove_listener(self, clock):
        session = ChatSession(clock=clock)
        listener = MagicMock()
        session.add_listener(listener)
        session.remove_listener(listener)
        session.remove_listener(listener)
        session.submit("hi")
        listener.assert_not_called()


class TestOtherMutations:
    def test_receive_and_notify_roles(self, clock):
        session = ChatSession(clock=clock)
        assert session.receive("answer").role == "assistant"
        assert session.receive("answer", sender="Bot").sender == "Bot"
        assert session.notify("heads up").role == "system"

    def test_new_conversation_seeds_system_notices(self, clock):
        session = ChatSession(WidgetConfig(max_context_messages=20), clock)
        session.submit("hello")
        session.new_conversation()

        messages = session.messages()
        assert [m.sender for m in messages] == ["System", "System"]
        assert all(m.role == "system" for m in messages)
        assert messages[0].text == STOCK_WELCOME_MESSAGE
        assert "remember up to 20 recent messages" in messages[1].text
        assert session.context() == []

    def test_load_restores_verbatim(self, clock, sample_history):
        session = ChatSession(clock=clock)
        session.load(sample_history.get_all())
        assert session.messages() == sample_history.get_all()
