"""
Google OAuth utilities.

These helpers build the consent URL, carry the bot session through the
redirect hop and talk to the Google token endpoint.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlencode

import httpx

from fastapi import status

from workspace_auth.core.config import GoogleSettings

GOOGLE_WORKSPACE_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/photoslibrary",
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/meetings.space.created",
)


class StateDecodingError(Exception):
    """Raised when an OAuth state value cannot be decoded."""


class TokenExchangeError(Exception):
    """Raised when the token endpoint rejects a grant."""


class TokenRefreshError(TokenExchangeError):
    """Raised when a refresh token can no longer be exchanged."""


@dataclass(frozen=True, slots=True)
class AuthorizationState:
    """Bot context carried through the Google redirect."""

    session_id: str
    phone: str


@dataclass(frozen=True, slots=True)
class GoogleTokenGrant:
    """Tokens returned by a successful grant."""

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None


class OAuthStateCodec:
    """Encode and decode the OAuth ``state`` parameter.

    The wire format is a JSON object ``{"SID": ..., "phone": ...}`` encoded as
    UTF-8 and then URL-safe base64, so it survives the query string untouched.
    """

    def encode(self, state: AuthorizationState) -> str:
        serialized = json.dumps({"SID": state.session_id, "phone": state.phone})
        return base64.urlsafe_b64encode(serialized.encode("utf-8")).decode("ascii")

    def decode(self, token: str) -> AuthorizationState:
        if not token:
            raise StateDecodingError("OAuth state is empty.")
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
            payload = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError) as exc:
            raise StateDecodingError("OAuth state is not valid base64 JSON.") from exc

        if not isinstance(payload, dict):
            raise StateDecodingError("OAuth state must decode to an object.")
        session_id = payload.get("SID")
        phone = payload.get("phone")
        if not isinstance(session_id, str) or not isinstance(phone, str) or not phone:
            raise StateDecodingError("OAuth state is missing SID or phone.")
        return AuthorizationState(session_id=session_id, phone=phone)


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange grants for tokens."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        scopes: Sequence[str] = GOOGLE_WORKSPACE_SCOPES,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._google = google_settings
        self._scopes = tuple(scopes)
        self._transport = transport

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    def build_authorization_url(self, state: str, access_type: str = "offline") -> str:
        """Construct the Google OAuth consent URL.

        ``prompt=consent`` makes Google issue a refresh token on every
        authorization, including for users who linked their account before.
        """
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._scopes),
            "access_type": access_type,
            "prompt": "consent",
            "state": state,
        }
        query = urlencode(params)
        return f"{self.AUTH_BASE_URL}?{query}"

    async def exchange_authorization_code(self, code: str) -> GoogleTokenGrant:
        """Exchange an authorization code for an access and refresh token."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": str(self._google.redirect_uri),
            "grant_type": "authorization_code",
        }
        token_payload = await self._post_token(payload, TokenExchangeError)
        return self._parse_grant(token_payload, TokenExchangeError, "token")

    async def refresh_access_token(self, refresh_token: str) -> GoogleTokenGrant:
        """
        Refresh the access token using a stored refresh token.

        ``refresh_token`` on the result is only set when Google rotated it.
        """
        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        token_payload = await self._post_token(payload, TokenRefreshError)
        return self._parse_grant(token_payload, TokenRefreshError, "refresh")

    @staticmethod
    def _parse_grant(
        token_payload: Dict[str, Any], error_cls: type[TokenExchangeError], kind: str
    ) -> GoogleTokenGrant:
        # Without a lifetime the access token can never be scheduled for refresh.
        incomplete = f"Incomplete {kind} payload returned from Google."
        access_token = token_payload.get("access_token")
        try:
            expires_in = int(token_payload["expires_in"])
        except (KeyError, TypeError, ValueError):
            raise error_cls(incomplete) from None
        if not access_token or expires_in <= 0:
            raise error_cls(incomplete)

        return GoogleTokenGrant(
            access_token=access_token,
            expires_in=expires_in,
            refresh_token=token_payload.get("refresh_token") or None,
        )

    async def _post_token(
        self, payload: Dict[str, str], error_cls: type[TokenExchangeError]
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.post(self.TOKEN_URL, data=payload)

        if response.status_code != status.HTTP_200_OK:
            raise error_cls(response.text)
        return response.json()


__all__ = [
    "AuthorizationState",
    "GOOGLE_WORKSPACE_SCOPES",
    "GoogleOAuthClient",
    "GoogleTokenGrant",
    "OAuthStateCodec",
    "StateDecodingError",
    "TokenExchangeError",
    "TokenRefreshError",
]
