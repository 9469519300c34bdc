"""
Locally cached user profile — name, phone (the chat recipient id) and language.
"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from baza_chat.i18n import DEFAULT_LANGUAGE
from baza_chat.storage import KeyValueStore

logger = logging.getLogger(__name__)

PROFILE_KEY = "baza_user_profile"


class LocalProfile(BaseModel):
    name: str = ""
    phone: str = ""
    language: str = DEFAULT_LANGUAGE
    avatar_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def registered(self) -> bool:
        return bool(self.phone.strip())


class ProfileStore:
    def __init__(self, store: KeyValueStore, key: str = PROFILE_KEY):
        self._store = store
        self._key = key

    async def load(self) -> LocalProfile:
        try:
            raw = await self._store.get(self._key)
            if raw:
                return LocalProfile.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Failed to load profile: %s", e)
        return LocalProfile()

    async def save(self, **fields: Any) -> LocalProfile:
        """Merge non-None fields into the cached profile and persist it."""
        current = await self.load()
        merged = current.model_copy(update={k: v for k, v in fields.items() if v is not None})
        await self._store.set(self._key, merged.model_dump_json())
        return merged

    async def clear(self) -> None:
        await self._store.remove(self._key)
