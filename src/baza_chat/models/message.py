"""
Timeline models — one entry per bubble shown to the user.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageStatus(str, Enum):
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


class PurchaseOption(BaseModel):
    """Purchasable item attached to an assistant reply."""

    id: str = ""
    display: Optional[str] = None
    price: Optional[float] = None
    qp_id: Optional[str] = None   # server-side purchase id
    name: Optional[str] = None    # older backends send name instead of display
    index: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    def label(self, position: int = 0) -> str:
        if self.display:
            return self.display
        if self.name:
            return self.name
        if self.index is not None:
            return str(self.index)
        return str(position)

    @property
    def purchase_id(self) -> str:
        return self.qp_id or self.id


class Message(BaseModel):
    id: str
    role: Role
    text: str
    created_at: datetime
    status: MessageStatus
    options: Optional[list[PurchaseOption]] = None
    reply_to: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_placeholder(self) -> bool:
        return self.role == Role.ASSISTANT and self.status == MessageStatus.SENDING
