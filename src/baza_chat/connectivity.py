"""
Connectivity monitor — turns reachability signals into a single boolean plus
edge-triggered online/offline transitions.

run() is one cooperative loop: it awaits the next transition and, on an
"online" edge, awaits the callback to completion before looking at the next
edge, so callbacks (queue drains) never overlap.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Coroutine, NamedTuple, Optional

from baza_chat.errors import BazaChatError
from baza_chat.transport.http import HttpClient

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL_S = 15.0


class ConnectivitySignal(NamedTuple):
    connected: bool
    internet_reachable: Optional[bool] = None

    @property
    def reachable(self) -> bool:
        # Unknown internet reachability counts as reachable; a failed send is a cheap fallback.
        return self.connected and self.internet_reachable is not False


class ConnectivityMonitor:
    def __init__(self, initial: bool = True):
        self._reachable = initial
        self._edges: asyncio.Queue[bool] = asyncio.Queue()

    @property
    def reachable(self) -> bool:
        return self._reachable

    def update(self, signal: ConnectivitySignal) -> bool:
        """Record a platform signal. Returns True if it caused a transition."""
        reachable = signal.reachable
        if reachable == self._reachable:
            return False
        self._reachable = reachable
        logger.info("Connectivity changed: %s", "online" if reachable else "offline")
        self._edges.put_nowait(reachable)
        return True

    async def transitions(self) -> AsyncIterator[bool]:
        while True:
            yield await self._edges.get()

    def _collapse_pending(self, last: bool) -> bool:
        # Edges that piled up while a callback ran: only the final state matters.
        while not self._edges.empty():
            last = self._edges.get_nowait()
        return last

    async def run(self, on_online: Callable[[], Coroutine[Any, Any, Any]]) -> None:
        """Await transitions forever; call on_online once per online edge."""
        async for online in self.transitions():
            online = self._collapse_pending(online)
            if not online:
                continue
            try:
                await on_online()
            except Exception:
                logger.exception("Online callback failed")

    async def watch(
        self,
        probe: Callable[[], Coroutine[Any, Any, ConnectivitySignal]],
        interval: float = DEFAULT_PROBE_INTERVAL_S,
    ) -> None:
        """Poll probe every interval seconds and feed the result into update()."""
        while True:
            try:
                signal = await probe()
            except Exception as e:
                logger.debug("Connectivity probe failed: %s", e)
                signal = ConnectivitySignal(connected=False)
            self.update(signal)
            await asyncio.sleep(interval)


class HttpProbe:
    """Backend reachability check: any HTTP answer means connected."""

    def __init__(self, http: HttpClient):
        self._http = http

    async def __call__(self) -> ConnectivitySignal:
        try:
            await self._http.head("/")
        except BazaChatError:
            return ConnectivitySignal(connected=False)
        return ConnectivitySignal(connected=True, internet_reachable=True)
