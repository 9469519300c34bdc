"""
AsyncBazaChat / BazaChat — main SDK clients.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import httpx

from baza_chat.config import ClientConfig
from baza_chat.connectivity import ConnectivityMonitor, HttpProbe
from baza_chat.models.message import Message, PurchaseOption
from baza_chat.pipeline import ChatPipeline
from baza_chat.profile import LocalProfile, ProfileStore
from baza_chat.queue import DrainResult, DurableQueue
from baza_chat.service import ConversationService
from baza_chat.storage import FileKeyValueStore, KeyValueStore
from baza_chat.transport.http import HttpClient


class AsyncBazaChat:
    """Async BazaAI client (primary)."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ClientConfig()
        self.store: KeyValueStore = store or FileKeyValueStore(Path(self.config.store_path))

        self.http = HttpClient(base_url=self.config.base_url, timeout=self.config.timeout, transport=transport)
        self.service = ConversationService(self.http)
        self.queue = DurableQueue(self.store, max_attempts=self.config.max_attempts)
        self.monitor = ConnectivityMonitor()
        self.profile = ProfileStore(self.store)
        self.pipeline = ChatPipeline(self.service, self.queue, self.monitor, language=self.config.language)

        self._watch_task: Optional[asyncio.Task[None]] = None

    @property
    def timeline(self) -> tuple[Message, ...]:
        return self.pipeline.timeline

    @property
    def suggestions(self) -> list[str]:
        return self.pipeline.suggestions

    @property
    def busy(self) -> bool:
        return self.pipeline.busy

    async def apply_profile(self) -> LocalProfile:
        """Load the cached profile and switch the pipeline to its language."""
        profile = await self.profile.load()
        if profile.language != self.pipeline.language:
            self.pipeline.set_language(profile.language)
        return profile

    async def start(self, watch: bool = True) -> None:
        """Start queue draining; with watch=True also poll the backend for reachability."""
        await self.apply_profile()
        self.pipeline.start()
        if watch and self._watch_task is None:
            self._watch_task = asyncio.create_task(
                self.monitor.watch(HttpProbe(self.http), self.config.probe_interval)
            )

    async def close(self) -> None:
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
        await self.pipeline.stop()
        await self.http.close()

    async def __aenter__(self) -> "AsyncBazaChat":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def send(self, text: str, recipient_id: Optional[str] = None) -> Optional[Message]:
        """Submit text; recipient defaults to the cached profile phone."""
        if recipient_id is None:
            profile = await self.profile.load()
            if not profile.registered:
                raise ValueError("No recipient: pass recipient_id or save a profile phone first")
            recipient_id = profile.phone
        return await self.pipeline.submit(text, recipient_id, self.pipeline.language)

    async def retry(self, message: Message) -> Optional[Message]:
        return await self.pipeline.retry(message)

    async def purchase(self, option: PurchaseOption, recipient_id: str) -> Message:
        return await self.pipeline.purchase(option, recipient_id)

    def clear(self) -> None:
        self.pipeline.clear()

    async def drain(self) -> DrainResult:
        return await self.pipeline.drain()


class BazaChat:
    """Sync wrapper around AsyncBazaChat. Runs the event loop internally.

    The loop only runs during a call, so there is no background connectivity
    watch or automatic drain: call drain() to resend queued messages.
    """

    def __init__(self, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async = AsyncBazaChat(**kwargs)
        self._run(self._async.apply_profile())

    @property
    def language(self) -> str:
        return self._async.pipeline.language

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def timeline(self) -> tuple[Message, ...]:
        return self._async.timeline

    @property
    def suggestions(self) -> list[str]:
        return self._async.suggestions

    def send(self, text: str, recipient_id: Optional[str] = None) -> Optional[Message]:
        return self._run(self._async.send(text, recipient_id))

    def retry(self, message: Message) -> Optional[Message]:
        return self._run(self._async.retry(message))

    def purchase(self, option: PurchaseOption, recipient_id: str) -> Message:
        return self._run(self._async.purchase(option, recipient_id))

    def clear(self) -> None:
        self._async.clear()

    def drain(self) -> DrainResult:
        return self._run(self._async.drain())

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
