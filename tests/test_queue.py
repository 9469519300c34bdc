"""Durable queue: enqueue persistence, best-effort drain, coalescing, degraded storage."""

import asyncio
import json

import pytest

from baza_chat.errors import StorageError, TransportError
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.queue import UNSENT_KEY, DrainResult, DurableQueue
from baza_chat.storage import FileKeyValueStore, MemoryKeyValueStore

from conftest import settle


def env(text: str) -> OutboundEnvelope:
    return OutboundEnvelope(recipient_id="+250700000000", text=text, language_hint="en")


class Recorder:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls: list[str] = []

    async def __call__(self, envelope: OutboundEnvelope) -> None:
        self.calls.append(envelope.text)
        if envelope.text in self.failing:
            raise TransportError("connection refused")


class BrokenStore(MemoryKeyValueStore):
    async def set(self, key: str, value: str) -> None:
        raise StorageError("disk full")


class TestEnqueue:

    @pytest.mark.asyncio
    async def test_persists_full_list_in_order(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.enqueue(env("B"))
        stored = json.loads(store.data[UNSENT_KEY])
        assert stored == [
            {"recipientId": "+250700000000", "text": "A", "languageHint": "en", "attempts": 0},
            {"recipientId": "+250700000000", "text": "B", "languageHint": "en", "attempts": 0},
        ]

    @pytest.mark.asyncio
    async def test_duplicates_are_kept(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.enqueue(env("A"))
        assert await queue.pending() == [env("A"), env("A")]

    @pytest.mark.asyncio
    async def test_concurrent_enqueues_lose_nothing(self, tmp_path):
        queue = DurableQueue(FileKeyValueStore(tmp_path / "store.json"))
        await asyncio.gather(*(queue.enqueue(env(str(i))) for i in range(10)))
        assert [e.text for e in await queue.pending()] == [str(i) for i in range(10)]

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self):
        queue = DurableQueue(BrokenStore())
        assert await queue.enqueue(env("A")) is False
        assert await queue.pending() == []

    def test_rejects_bad_max_attempts(self, store):
        with pytest.raises(ValueError):
            DurableQueue(store, max_attempts=0)


class TestDrain:

    @pytest.mark.asyncio
    async def test_empty_queue_is_a_noop(self, store):
        send = Recorder()
        result = await DurableQueue(store).drain(send)
        assert result == DrainResult()
        assert send.calls == []
        assert UNSENT_KEY not in store.data

    @pytest.mark.asyncio
    async def test_full_success_clears_store(self, store):
        queue = DurableQueue(store)
        for text in ("A", "B", "C"):
            await queue.enqueue(env(text))
        send = Recorder()

        result = await queue.drain(send)

        assert send.calls == ["A", "B", "C"]
        assert result.sent == 3 and result.failed == 0
        assert UNSENT_KEY not in store.data

    @pytest.mark.asyncio
    async def test_failed_entry_keeps_its_position(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.enqueue(env("B"))

        result = await queue.drain(Recorder(failing={"A"}))

        assert result == DrainResult(sent=1, failed=1)
        pending = await queue.pending()
        assert pending == [env("A")]
        assert pending[0].attempts == 1

    @pytest.mark.asyncio
    async def test_failures_keep_relative_order(self, store):
        queue = DurableQueue(store)
        for text in ("A", "B", "C", "D"):
            await queue.enqueue(env(text))
        send = Recorder(failing={"B", "D"})

        await queue.drain(send)

        assert send.calls == ["A", "B", "C", "D"]
        assert [e.text for e in await queue.pending()] == ["B", "D"]

    @pytest.mark.asyncio
    async def test_max_attempts_drops_envelope(self, store):
        queue = DurableQueue(store, max_attempts=2)
        await queue.enqueue(env("A"))
        send = Recorder(failing={"A"})

        first = await queue.drain(send)
        second = await queue.drain(send)

        assert first == DrainResult(sent=0, failed=1, dropped=0)
        assert second == DrainResult(sent=0, failed=0, dropped=1)
        assert await queue.pending() == []

    @pytest.mark.asyncio
    async def test_overlapping_drain_is_coalesced(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        release = asyncio.Event()
        calls = []

        async def slow_send(envelope):
            calls.append(envelope.text)
            await release.wait()

        first = asyncio.create_task(queue.drain(slow_send))
        await settle(lambda: queue.draining)

        second = await queue.drain(slow_send)
        assert second.skipped

        release.set()
        assert (await first).sent == 1
        assert calls == ["A"]

    @pytest.mark.asyncio
    async def test_enqueue_during_drain_is_kept(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.enqueue(env("B"))
        release = asyncio.Event()

        async def slow_send(envelope):
            await release.wait()
            if envelope.text == "B":
                raise TransportError("timeout")

        drain = asyncio.create_task(queue.drain(slow_send))
        await settle(lambda: queue.draining)

        assert await asyncio.wait_for(queue.enqueue(env("C")), timeout=1)

        release.set()
        assert await drain == DrainResult(sent=1, failed=1)
        pending = await queue.pending()
        assert [e.text for e in pending] == ["B", "C"]
        assert [e.attempts for e in pending] == [1, 0]

    @pytest.mark.asyncio
    async def test_clear_during_drain_is_respected(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        release = asyncio.Event()

        async def failing_send(envelope):
            await release.wait()
            raise TransportError("timeout")

        drain = asyncio.create_task(queue.drain(failing_send))
        await settle(lambda: queue.draining)
        await queue.clear()

        release.set()
        await drain
        assert await queue.pending() == []

    @pytest.mark.asyncio
    async def test_duplicate_envelopes_settle_independently(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.enqueue(env("A"))
        outcomes = iter([TransportError("timeout"), None])

        async def send(envelope):
            error = next(outcomes)
            if error is not None:
                raise error

        assert await queue.drain(send) == DrainResult(sent=1, failed=1)
        pending = await queue.pending()
        assert len(pending) == 1
        assert pending[0].attempts == 1

    @pytest.mark.asyncio
    async def test_corrupt_store_is_left_alone(self):
        store = MemoryKeyValueStore({UNSENT_KEY: "{not json"})
        send = Recorder()
        result = await DurableQueue(store).drain(send)
        assert result == DrainResult()
        assert send.calls == []
        assert store.data[UNSENT_KEY] == "{not json"

    @pytest.mark.asyncio
    async def test_clear(self, store):
        queue = DurableQueue(store)
        await queue.enqueue(env("A"))
        await queue.clear()
        assert await queue.pending() == []
