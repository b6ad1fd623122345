"""Start of the Google linking flow for a bot conversation."""

from __future__ import annotations

import logging

from workspace_auth.clients.google_auth import (
    AuthorizationState,
    GoogleOAuthClient,
    OAuthStateCodec,
)
from workspace_auth.clients.identity import IdentityTokenValidator

logger = logging.getLogger(__name__)


class AuthorizationInitiator:
    """Builds the consent URL a bot user opens to link their Google account."""

    def __init__(
        self,
        *,
        identity_validator: IdentityTokenValidator,
        oauth_client: GoogleOAuthClient,
        state_codec: OAuthStateCodec,
    ) -> None:
        self._identity = identity_validator
        self._oauth = oauth_client
        self._state_codec = state_codec

    def build_authorization_url(self, session_id: str, identity_token: str) -> str:
        claims = self._identity.validate(identity_token)
        state = self._state_codec.encode(
            AuthorizationState(session_id=session_id, phone=claims.phone)
        )
        logger.info("Issuing Google consent URL for %s", claims.phone)
        return self._oauth.build_authorization_url(state=state, access_type="offline")


__all__ = ["AuthorizationInitiator"]
