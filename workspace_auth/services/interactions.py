"""Detect whether a phone number has talked to the bot before."""

from __future__ import annotations

import logging
from typing import Optional

from workspace_auth.clients.user_store import UserRecordStore

logger = logging.getLogger(__name__)


class MissingIdentifierError(ValueError):
    """Raised when the messaging webhook did not supply a phone number."""


class FirstInteractionService:
    """Routes brand-new contacts into the account-linking flow."""

    def __init__(self, store: UserRecordStore) -> None:
        self._store = store

    async def is_first_interaction(self, phone: Optional[str]) -> bool:
        """
        Return True when no user record exists for ``phone``.

        A record without a refresh token still counts as a prior contact.
        Storage errors propagate so returning users are never treated as new.
        """
        if not phone:
            raise MissingIdentifierError("Phone number is empty or undefined.")

        record = await self._store.find_by_phone(phone)
        if record is None:
            return True
        logger.debug("%s has interacted with the bot before", phone)
        return False


__all__ = ["FirstInteractionService", "MissingIdentifierError"]
