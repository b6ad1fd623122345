"""
Per-user authorized Google session.

Each ``authorize`` call gets its own instance, so concurrent requests for
different users never share credentials.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

from google.oauth2.credentials import Credentials

from workspace_auth.clients.google_auth import GoogleOAuthClient

logger = logging.getLogger(__name__)

RotationHook = Callable[[str, str], Awaitable[Any]]


class AuthorizedGoogleSession:
    """Holds a user's refresh token and mints access credentials on demand."""

    _REFRESH_WINDOW = timedelta(minutes=5)

    def __init__(
        self,
        *,
        phone: str,
        refresh_token: str,
        oauth_client: GoogleOAuthClient,
        on_rotation: Optional[RotationHook] = None,
    ) -> None:
        self._phone = phone
        self._refresh_token = refresh_token
        self._oauth = oauth_client
        self._on_rotation = on_rotation
        self._access_token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._rotated_refresh_token: Optional[str] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def phone(self) -> str:
        return self._phone

    @property
    def rotated_refresh_token(self) -> Optional[str]:
        """Latest refresh token Google issued during this session, if any."""
        return self._rotated_refresh_token

    def _needs_refresh(self) -> bool:
        if not self._access_token or self._expires_at is None:
            return True
        return self._expires_at <= datetime.now(timezone.utc) + self._REFRESH_WINDOW

    async def refresh(self) -> str:
        """Mint a new access token, persisting a rotated refresh token if issued."""
        refreshed_at = datetime.now(timezone.utc)
        grant = await self._oauth.refresh_access_token(self._refresh_token)
        self._access_token = grant.access_token
        self._expires_at = refreshed_at + timedelta(seconds=grant.expires_in)

        rotated = grant.refresh_token
        if rotated and rotated != self._refresh_token:
            self._refresh_token = rotated
            self._rotated_refresh_token = rotated
            await self._persist_rotation(rotated)
        return grant.access_token

    async def _persist_rotation(self, refresh_token: str) -> None:
        if self._on_rotation is None:
            return
        try:
            await self._on_rotation(self._phone, refresh_token)
        except Exception:  # pylint: disable=broad-except
            # The caller's API action must still go ahead.
            logger.exception("Failed to persist rotated refresh token for %s", self._phone)
        else:
            logger.info("Persisted rotated refresh token for %s", self._phone)

    def _refresh_handler(self, request: Any, scopes: Any = None) -> tuple[str, datetime]:
        """Blocking refresh used by google-auth when the access token expires.

        google-auth refreshes synchronously, so this must run off the event
        loop thread (e.g. inside ``asyncio.to_thread``).
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "Google credentials must be refreshed from a worker thread."
            )

        if self._loop is not None and self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self.refresh(), self._loop).result()
        else:
            asyncio.run(self.refresh())
        return self._access_token, self._naive_expiry()

    def _naive_expiry(self) -> Optional[datetime]:
        # google-auth compares expiry against naive UTC timestamps.
        return self._expires_at.replace(tzinfo=None) if self._expires_at else None

    async def get_credentials(self) -> Credentials:
        """Return credentials usable with ``googleapiclient.discovery.build``.

        The refresh token stays inside the session: google-auth refreshes
        through ``refresh_handler`` so rotated tokens are persisted.
        """
        self._loop = asyncio.get_running_loop()
        if self._needs_refresh():
            await self.refresh()

        return Credentials(
            token=self._access_token,
            expiry=self._naive_expiry(),
            scopes=list(self._oauth.scopes),
            refresh_handler=self._refresh_handler,
        )


__all__ = ["AuthorizedGoogleSession", "RotationHook"]
