"""
POST /chat and POST /purchase response model.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from baza_chat.models.message import PurchaseOption


class ChatResponse(BaseModel):
    reply: Optional[str] = None
    options: Optional[list[PurchaseOption]] = None
    quick_replies: Optional[list[str]] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("options", "quick_replies", mode="before")
    @classmethod
    def _lists_only(cls, value: object) -> object:
        # Anything that is not a JSON array is treated as absent.
        return value if isinstance(value, list) else None
