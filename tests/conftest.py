"""Shared fixtures."""

import asyncio
from typing import Callable, List, Optional

import pytest

from paradox_mod_translator.config import ClientSettings
from paradox_mod_translator.llm_client import ChatResult


class FakeChatClient:
    """
    Stand-in for ChatClient.

    ``responder`` receives the user message (the chunk text) and returns the
    translated text or raises.
    """

    def __init__(
        self,
        responder: Optional[Callable[[str], str]] = None,
        concurrency: int = 2,
        delay: float = 0.0,
    ):
        self.settings = ClientSettings(concurrency=concurrency)
        self.responder = responder or (lambda text: text)
        self.delay = delay
        self.calls: List[list] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def chat_completion(self, messages):
        self.calls.append(messages)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return ChatResult(content=self.responder(messages[-1]["content"]), finish_reason="stop")
        finally:
            self.in_flight -= 1

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeChatClient
