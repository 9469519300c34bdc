"""
REST HTTP client for the BazaAI backend.
"""

from typing import Any, Optional

import httpx

from baza_chat.errors import ServerError, TransportError

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_S = 30.0


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "baza-chat/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if resp.status_code < 200 or resp.status_code >= 300:
            raise ServerError(resp.status_code, f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError:
            raise ServerError(resp.status_code, f"Invalid JSON body: {resp.text[:200]}")

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        try:
            resp = await self._client.post(
                path, json=body, headers={"Content-Type": "application/json; charset=utf-8"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"POST {path} failed: {e!r}")
        return self._decode(resp)

    async def head(self, path: str = "/") -> int:
        """Return the status code; any HTTP answer means the backend is reachable."""
        try:
            resp = await self._client.head(path)
        except httpx.HTTPError as e:
            raise TransportError(f"HEAD {path} failed: {e!r}")
        return resp.status_code

    async def close(self) -> None:
        await self._client.aclose()
