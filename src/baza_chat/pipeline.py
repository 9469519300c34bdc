"""
Message delivery pipeline — owns the visible timeline.

Each submission is one turn: a user message (always shown as sent) and an
assistant placeholder that settles to either the real reply or a failed,
retryable entry. Settling always matches the placeholder by id, so a late
reply from an older turn can only ever touch its own placeholder.

Undelivered turns are handed to the durable queue; the connectivity task
drains that queue on every transition back online.
"""

import asyncio
import contextlib
import itertools
import logging
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

from baza_chat.connectivity import ConnectivityMonitor
from baza_chat.errors import BazaChatError
from baza_chat.i18n import DEFAULT_LANGUAGE, offline_notice, purchase_failed, retry_prompt, translate
from baza_chat.models.chat import ChatResponse
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.models.message import Message, MessageStatus, PurchaseOption, Role
from baza_chat.queue import DrainResult, DurableQueue
from baza_chat.service import ConversationService
from baza_chat.suggestions import defaults, reconcile

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "..."
NO_REPLY_TEXT = "No reply"


class CounterIds:
    """Monotonic message ids: msg-1, msg-2, ..."""

    def __init__(self, prefix: str = "msg", start: int = 1):
        self._prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Turn(NamedTuple):
    user: Message
    placeholder: Message
    envelope: OutboundEnvelope


class ChatPipeline:
    def __init__(
        self,
        service: ConversationService,
        queue: DurableQueue,
        monitor: ConnectivityMonitor,
        language: str = DEFAULT_LANGUAGE,
        ids: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._service = service
        self._queue = queue
        self._monitor = monitor
        self._language = language
        self._ids = ids or CounterIds()
        self._clock = clock or _utcnow

        self._timeline: list[Message] = []
        self._suggestions: list[str] = defaults(language)
        self._envelopes: dict[str, OutboundEnvelope] = {}
        self._latest_turn: Optional[str] = None
        self._in_flight = 0
        self._task: Optional[asyncio.Task[None]] = None

    # --- read-only views ---

    @property
    def timeline(self) -> tuple[Message, ...]:
        return tuple(self._timeline)

    @property
    def suggestions(self) -> list[str]:
        return list(self._suggestions)

    @property
    def busy(self) -> bool:
        return self._in_flight > 0

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        self._language = language
        self._suggestions = defaults(language)

    # --- timeline helpers ---

    def _new_message(self, role: Role, text: str, status: MessageStatus, **extra) -> Message:
        return Message(id=self._ids(), role=role, text=text, created_at=self._clock(), status=status, **extra)

    def _index(self, message_id: str) -> Optional[int]:
        for i, m in enumerate(self._timeline):
            if m.id == message_id:
                return i
        return None

    def _settle(self, placeholder: Message, replacement: Message) -> Optional[Message]:
        idx = self._index(placeholder.id)
        if idx is None:
            logger.debug("Placeholder %s no longer in timeline, discarding result", placeholder.id)
            return None
        self._timeline[idx] = replacement
        return replacement

    def _settle_failed(self, placeholder: Message, text: str) -> Optional[Message]:
        return self._settle(placeholder, placeholder.model_copy(update={"status": MessageStatus.FAILED, "text": text}))

    def _settle_sent(self, placeholder: Message, response: ChatResponse) -> Optional[Message]:
        reply = self._new_message(
            Role.ASSISTANT, response.reply or NO_REPLY_TEXT, MessageStatus.SENT,
            options=response.options, reply_to=placeholder.reply_to,
        )
        return self._settle(placeholder, reply)

    def _set_suggestions(self, turn: Turn, suggestions: list[str]) -> None:
        # A late result from an older turn must not override the newest turn's suggestions.
        if self._latest_turn == turn.user.id:
            self._suggestions = suggestions

    # --- submission ---

    def _begin(self, text: str, recipient_id: str, language_hint: Optional[str]) -> Optional[Turn]:
        text = (text or "").strip()
        if not text:
            return None
        user = self._new_message(Role.USER, text, MessageStatus.SENT)
        placeholder = self._new_message(Role.ASSISTANT, PLACEHOLDER_TEXT, MessageStatus.SENDING, reply_to=user.id)
        envelope = OutboundEnvelope(recipient_id=recipient_id, text=text, language_hint=language_hint or self._language)
        self._timeline.extend((user, placeholder))
        self._envelopes[user.id] = envelope
        self._latest_turn = user.id
        self._suggestions = []
        return Turn(user, placeholder, envelope)

    async def _deliver(self, turn: Turn) -> Optional[Message]:
        self._in_flight += 1
        try:
            if not self._monitor.reachable:
                failed = self._settle_failed(turn.placeholder, offline_notice(self._language))
                self._set_suggestions(turn, defaults(self._language))
                await self._queue.enqueue(turn.envelope)
                return failed

            try:
                response = await self._service.send(turn.envelope)
            except BazaChatError as e:
                logger.warning("Error sending message %s: %s", turn.user.id, e)
                failed = self._settle_failed(turn.placeholder, retry_prompt(self._language))
                self._set_suggestions(turn, defaults(self._language))
                await self._queue.enqueue(turn.envelope)
                return failed
            except Exception:
                self._settle_failed(turn.placeholder, retry_prompt(self._language))
                self._set_suggestions(turn, defaults(self._language))
                raise

            reply = self._settle_sent(turn.placeholder, response)
            if reply is not None:
                self._set_suggestions(turn, reconcile(response, self._language))
            return reply
        finally:
            self._in_flight -= 1

    async def submit(self, text: str, recipient_id: str, language_hint: Optional[str] = None) -> Optional[Message]:
        """Send one user message.

        Returns the settled assistant entry, or None when text is blank or the
        placeholder was removed (clear/retry) before the call settled.
        Delivery failures never raise: they show up as a failed entry and
        the envelope is queued for a later drain.
        """
        turn = self._begin(text, recipient_id, language_hint)
        if turn is None:
            return None
        return await self._deliver(turn)

    async def retry(self, message: Message) -> Optional[Message]:
        """Start a fresh attempt for the turn `message` belongs to.

        `message` may be the turn's user message or its failed assistant entry.
        The turn's failed assistant entries are dropped so only the newest
        attempt's outcome stays visible.
        """
        user_id = message.id if message.role == Role.USER else message.reply_to
        envelope = self._envelopes.get(user_id or "")
        if envelope is None:
            raise ValueError(f"Message {message.id} does not belong to a known turn")
        turn = self._begin(envelope.text, envelope.recipient_id, envelope.language_hint)
        if turn is None:
            return None
        self._timeline = [
            m for m in self._timeline
            if not (m.role == Role.ASSISTANT and m.status == MessageStatus.FAILED and m.reply_to == user_id)
        ]
        return await self._deliver(turn)

    def clear(self) -> None:
        """Empty the visible history. Queued envelopes are kept."""
        self._timeline = []
        self._envelopes = {}
        self._latest_turn = None
        self._suggestions = defaults(self._language)

    async def purchase(self, option: PurchaseOption, recipient_id: str) -> Message:
        """Buy an option from an earlier reply. Purchases are never queued."""
        label = option.label()
        user = self._new_message(
            Role.USER, f"{translate(self._language, 'purchase_prefix')} {label}", MessageStatus.SENT,
        )
        self._timeline.append(user)
        self._in_flight += 1
        try:
            response = await self._service.purchase(recipient_id, option.purchase_id)
        except BazaChatError as e:
            logger.warning("Purchase of %s failed: %s", option.purchase_id, e)
            reply = self._new_message(
                Role.ASSISTANT, purchase_failed(self._language), MessageStatus.FAILED, reply_to=user.id,
            )
        else:
            reply = self._new_message(
                Role.ASSISTANT, response.reply or translate(self._language, "buy_success"), MessageStatus.SENT,
                options=response.options, reply_to=user.id,
            )
        finally:
            self._in_flight -= 1
        self._timeline.append(reply)
        return reply

    # --- background delivery ---

    async def drain(self) -> DrainResult:
        """Resend queued envelopes. Replies never reach the timeline."""
        return await self._queue.drain(self._service.send)

    async def _connectivity_loop(self) -> None:
        if self._monitor.reachable:
            try:
                await self.drain()
            except Exception:
                logger.exception("Startup drain failed")
        await self._monitor.run(self.drain)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._connectivity_loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def __aenter__(self) -> "ChatPipeline":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
