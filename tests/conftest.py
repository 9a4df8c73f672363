"""Shared fixtures for ChatLedger tests."""

from datetime import datetime, timedelta

import pytest

from chatledger import ChatHistory


class TickingClock:
    """Deterministic clock: each call returns the previous time plus ``step``."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        self.calls += 1
        return value


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2025, 11, 13, 9, 30, 0))


@pytest.fixture
def history(clock) -> ChatHistory:
    return ChatHistory(clock=clock)


@pytest.fixture
def sample_history(history) -> ChatHistory:
    """The five-message conversation: two turns with a system note in between."""
    history.append("You", "Hello")
    history.append("Assistant", "Hi there")
    history.append("System", "Note")
    history.append("You", "How are you")
    history.append("Assistant", "Fine")
    return history
