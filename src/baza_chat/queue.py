"""
Durable outbound queue — at-least-once delivery across restarts and offline periods.

Drain policy is best-effort-all: every persisted envelope is attempted in
enqueue order, successes are removed, failures keep their relative order.
Every read-modify-write of the persisted list runs under one asyncio.Lock.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine, NamedTuple, Optional

from pydantic import ValidationError

from baza_chat.errors import BazaChatError, StorageError
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.storage import KeyValueStore

logger = logging.getLogger(__name__)

UNSENT_KEY = "unsent_messages_queue"

SendFn = Callable[[OutboundEnvelope], Coroutine[Any, Any, Any]]


class DrainResult(NamedTuple):
    sent: int = 0
    failed: int = 0
    dropped: int = 0
    skipped: bool = False


class DurableQueue:
    def __init__(self, store: KeyValueStore, key: str = UNSENT_KEY, max_attempts: Optional[int] = None):
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")
        self._store = store
        self._key = key
        self._max_attempts = max_attempts
        self._lock = asyncio.Lock()
        self._draining = False

    @property
    def draining(self) -> bool:
        return self._draining

    async def _load(self) -> list[OutboundEnvelope]:
        raw = await self._store.get(self._key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("queue is not a list")
            return [OutboundEnvelope.model_validate(item) for item in items]
        except (ValueError, ValidationError) as e:
            raise StorageError(f"Corrupt queue under {self._key!r}: {e}")

    async def _save(self, envelopes: list[OutboundEnvelope]) -> None:
        if envelopes:
            await self._store.set(self._key, json.dumps([e.to_stored() for e in envelopes], ensure_ascii=False))
        else:
            await self._store.remove(self._key)

    async def enqueue(self, envelope: OutboundEnvelope) -> bool:
        """Append one envelope. Returns False when the store failed (logged, not raised)."""
        async with self._lock:
            try:
                envelopes = await self._load()
                envelopes.append(envelope)
                await self._save(envelopes)
            except Exception as e:
                logger.warning("Failed to enqueue unsent message: %s", e)
                return False
        return True

    async def pending(self) -> list[OutboundEnvelope]:
        async with self._lock:
            try:
                return await self._load()
            except Exception as e:
                logger.warning("Failed to read unsent queue: %s", e)
                return []

    async def clear(self) -> None:
        async with self._lock:
            try:
                await self._store.remove(self._key)
            except Exception as e:
                logger.warning("Failed to clear unsent queue: %s", e)

    async def drain(self, send: SendFn) -> DrainResult:
        """Resend every persisted envelope in enqueue order.

        A drain requested while another one is running returns immediately
        with skipped=True. Replies are discarded; only delivery matters here.
        The lock is held only to read the list and to write the outcome back,
        never across a send, so enqueue() stays fast during a long drain.
        """
        if self._draining:
            logger.debug("Drain already in progress, coalescing")
            return DrainResult(skipped=True)
        self._draining = True
        try:
            return await self._drain(send)
        finally:
            self._draining = False

    async def _drain(self, send: SendFn) -> DrainResult:
        async with self._lock:
            try:
                envelopes = await self._load()
            except Exception as e:
                logger.warning("Failed to read unsent queue: %s", e)
                return DrainResult()
        if not envelopes:
            return DrainResult()

        # (attempted envelope, replacement or None when it leaves the queue)
        outcomes: list[tuple[OutboundEnvelope, Optional[OutboundEnvelope]]] = []
        sent = failed = dropped = 0
        for envelope in envelopes:
            try:
                await send(envelope)
            except BazaChatError as e:
                logger.warning("Retry failed for queued message to %s: %s", envelope.recipient_id, e)
                retried = envelope.model_copy(update={"attempts": envelope.attempts + 1})
                if self._max_attempts is not None and retried.attempts >= self._max_attempts:
                    logger.warning(
                        "Dropping queued message to %s after %d attempts", envelope.recipient_id, retried.attempts,
                    )
                    dropped += 1
                    outcomes.append((envelope, None))
                else:
                    failed += 1
                    outcomes.append((envelope, retried))
                continue
            logger.debug("Resent queued message to %s", envelope.recipient_id)
            sent += 1
            outcomes.append((envelope, None))

        async with self._lock:
            try:
                await self._save(_merge(await self._load(), outcomes))
            except Exception as e:
                logger.warning("Failed to persist unsent queue after drain: %s", e)
        logger.info("Drained unsent queue: %d sent, %d failed, %d dropped", sent, failed, dropped)
        return DrainResult(sent=sent, failed=failed, dropped=dropped)


def _merge(
    current: list[OutboundEnvelope],
    outcomes: list[tuple[OutboundEnvelope, Optional[OutboundEnvelope]]],
) -> list[OutboundEnvelope]:
    """Apply drain outcomes to the list as it is now.

    Envelopes appended while the drain ran are kept after the drained ones;
    envelopes that vanished meanwhile (queue cleared) are skipped.
    """
    merged = list(current)
    pos = 0
    for envelope, replacement in outcomes:
        for i in range(pos, len(merged)):
            if merged[i] == envelope:
                break
        else:
            continue
        if replacement is None:
            del merged[i]
            pos = i
        else:
            merged[i] = replacement
            pos = i + 1
    return merged
