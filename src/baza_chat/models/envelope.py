"""
Outbound envelope — the minimal payload persisted for resend.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class OutboundEnvelope(BaseModel):
    recipient_id: str = Field(alias="recipientId")
    text: str
    language_hint: Optional[str] = Field(default=None, alias="languageHint")
    attempts: int = 0

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OutboundEnvelope):
            return NotImplemented
        return (self.recipient_id, self.text, self.language_hint) == (
            other.recipient_id, other.text, other.language_hint,
        )

    def to_stored(self) -> dict[str, Any]:
        """Shape kept in the durable queue: {recipientId, text, languageHint, attempts}."""
        return self.model_dump(by_alias=True)

    def to_wire(self) -> dict[str, Any]:
        """POST /chat body: {recipientId, message, languageHint?}."""
        body: dict[str, Any] = {"recipientId": self.recipient_id, "message": self.text}
        if self.language_hint:
            body["languageHint"] = self.language_hint
        return body
