"""
Google refresh-token lifecycle bound to a bot user's phone number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from workspace_auth.clients.google_auth import GoogleOAuthClient, OAuthStateCodec
from workspace_auth.clients.user_store import UserRecordStore
from workspace_auth.models.user import UserRecord
from workspace_auth.services.google_session import AuthorizedGoogleSession
from workspace_auth.services.token_cipher import RefreshTokenCipher

logger = logging.getLogger(__name__)


class MissingAuthorizationError(Exception):
    """Raised when a user has no stored refresh token and must link again."""


@dataclass(frozen=True, slots=True)
class CodeExchangeResult:
    """Outcome of a completed OAuth callback."""

    session_id: str
    phone: str
    access_token: str


class GoogleTokenService:
    """Exchanges authorization codes and hands out authorized sessions."""

    def __init__(
        self,
        *,
        store: UserRecordStore,
        oauth_client: GoogleOAuthClient,
        state_codec: OAuthStateCodec,
        token_cipher: RefreshTokenCipher,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._state_codec = state_codec
        self._cipher = token_cipher

    async def exchange_code_for_token(
        self, code: str, encoded_state: str
    ) -> CodeExchangeResult:
        """
        Complete the OAuth callback for the user named in ``encoded_state``.

        The refresh token is stored for that user. The decoded session and the
        access token are returned. Nothing is written when the state or the
        code is rejected.
        """
        state = self._state_codec.decode(encoded_state)
        grant = await self._oauth.exchange_authorization_code(code)
        logger.info("Exchanged authorization code for %s", state.phone)

        if grant.refresh_token:
            await self.save_refresh_token(state.phone, grant.refresh_token)
        else:
            logger.warning(
                "Google returned no refresh token for %s; keeping the stored one",
                state.phone,
            )
        return CodeExchangeResult(
            session_id=state.session_id,
            phone=state.phone,
            access_token=grant.access_token,
        )

    async def save_refresh_token(self, phone: str, refresh_token: str) -> UserRecord:
        """Store ``refresh_token`` for ``phone``, creating the record if needed."""
        record = await self._store.upsert_refresh_token(
            phone, self._cipher.encrypt(refresh_token)
        )
        logger.info("Saved refresh token for %s", phone)
        return record

    async def get_refresh_token(self, phone: str) -> Optional[str]:
        """Return the stored refresh token, or ``None`` when it is not usable."""
        try:
            record = await self._store.find_by_phone(phone)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to load refresh token for %s", phone)
            return None

        if record is None or not record.refresh_token:
            return None
        try:
            return self._cipher.decrypt(record.refresh_token)
        except ValueError:
            logger.exception("Stored refresh token for %s is unreadable", phone)
            return None

    async def authorize(self, phone: str) -> AuthorizedGoogleSession:
        """Build a fresh authorized session from the user's stored refresh token."""
        refresh_token = await self.get_refresh_token(phone)
        if not refresh_token:
            raise MissingAuthorizationError(
                f"No refresh token stored for {phone}; the user must link Google again."
            )

        return AuthorizedGoogleSession(
            phone=phone,
            refresh_token=refresh_token,
            oauth_client=self._oauth,
            on_rotation=self.save_refresh_token,
        )


__all__ = ["CodeExchangeResult", "GoogleTokenService", "MissingAuthorizationError"]
