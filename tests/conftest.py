"""Shared fakes for pipeline, queue and CLI tests."""

import asyncio
from typing import Any

import pytest

from baza_chat.models.chat import ChatResponse
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.storage import MemoryKeyValueStore

RECIPIENT = "+250700000000"


class FakeService:
    """Scripted stand-in for ConversationService.

    Each call pops the next outcome: a ChatResponse, an exception to raise,
    or a future to await first. With nothing scripted it answers "ok".
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.sent: list[OutboundEnvelope] = []
        self.purchases: list[tuple[str, str]] = []

    async def _next(self) -> ChatResponse:
        outcome = self.outcomes.pop(0) if self.outcomes else ChatResponse(reply="ok")
        if isinstance(outcome, asyncio.Future):
            outcome = await outcome
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def send(self, envelope: OutboundEnvelope) -> ChatResponse:
        self.sent.append(envelope)
        return await self._next()

    async def purchase(self, recipient_id: str, qp_id: str) -> ChatResponse:
        self.purchases.append((recipient_id, qp_id))
        return await self._next()


async def settle(condition, rounds: int = 100) -> bool:
    """Yield to the loop until condition() holds."""
    for _ in range(rounds):
        if condition():
            return True
        await asyncio.sleep(0)
    return condition()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def service() -> FakeService:
    return FakeService()

