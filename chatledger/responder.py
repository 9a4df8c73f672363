"""Simulated asynchronous assistant used by the demo and the tests."""

from __future__ import annotations

import asyncio
import logging
import time

from .history import ChatMessage
from .session import ChatSession

logger = logging.getLogger("chatledger.responder")

BACKGROUND_DELAY_SECONDS = 2.0


class SimulatedResponder:
    """Fake assistant that answers after a fixed delay.

    The delay is awaited with ``asyncio.sleep`` so the UI loop stays responsive
    while a reply is "in flight". Pending-state bookkeeping (disabled input,
    progress indicator) belongs to the caller.
    """

    def __init__(
        self,
        delay_seconds: float = 1.5,
        background_delay_seconds: float = BACKGROUND_DELAY_SECONDS,
    ) -> None:
        if delay_seconds < 0 or background_delay_seconds < 0:
            raise ValueError("delays must be >= 0")
        self.delay_seconds = delay_seconds
        self.background_delay_seconds = background_delay_seconds

    async def respond(self, message: str) -> str:
        """Echo ``message`` back after ``delay_seconds``."""
        start_time = time.perf_counter()
        await asyncio.sleep(self.delay_seconds)
        logger.debug(
            "Simulated response ready in %.3fs (%d chars in).",
            time.perf_counter() - start_time,
            len(message),
        )
        return f'I received your message: "{message}". This is a simulated response!'

    async def background_response(self) -> str:
        """Unprompted reply, as produced by the demo's "simulate" control."""
        await asyncio.sleep(self.background_delay_seconds)
        seconds = f"{self.background_delay_seconds:g}"
        return f"This is a simulated async response that took {seconds} seconds to 'process'."

    async def reply_to(self, session: ChatSession, text: str) -> ChatMessage | None:
        """Submit ``text`` as the user and record the simulated answer.

        Returns the assistant message, or None when the input was blank.
        """
        sent = session.submit(text)
        if sent is None:
            return None
        reply = await self.respond(sent.text)
        return session.receive(reply)
