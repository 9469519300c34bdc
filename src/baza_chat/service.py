"""
Remote conversation service — POST /chat and POST /purchase.
"""

from typing import Any

from pydantic import ValidationError

from baza_chat.errors import ServerError
from baza_chat.models.chat import ChatResponse
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.transport.http import HttpClient


class ConversationService:
    def __init__(self, http: HttpClient):
        self._http = http

    @staticmethod
    def _parse(data: Any) -> ChatResponse:
        if not isinstance(data, dict):
            raise ServerError(200, f"Unexpected response body: {str(data)[:200]}")
        try:
            return ChatResponse.model_validate(data)
        except ValidationError as e:
            raise ServerError(200, f"Malformed chat response: {e}")

    async def send(self, envelope: OutboundEnvelope) -> ChatResponse:
        """Deliver one message and return the bot reply."""
        return self._parse(await self._http.post("/chat", envelope.to_wire()))

    async def purchase(self, recipient_id: str, qp_id: str) -> ChatResponse:
        """Buy a purchasable option offered in an earlier reply."""
        return self._parse(await self._http.post("/purchase", {"phone": recipient_id, "qp_id": qp_id}))

    async def ping(self) -> bool:
        await self._http.head("/")
        return True
