"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from workspace_auth.clients import (
    GoogleOAuthClient,
    IdentityTokenValidator,
    OAuthStateCodec,
    SQLUserRecordStore,
)
from workspace_auth.core.config import get_settings
from workspace_auth.services import (
    AuthorizationInitiator,
    FirstInteractionService,
    GoogleTokenService,
    RefreshTokenCipher,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_state_codec() -> OAuthStateCodec:
    """Provide the OAuth state codec."""
    return OAuthStateCodec()


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client. It holds no per-user state."""
    settings = _settings()
    return GoogleOAuthClient(settings.google)


@lru_cache()
def get_identity_validator() -> IdentityTokenValidator:
    """Provide the identity token validator."""
    return IdentityTokenValidator.from_settings(_settings().identity)


@lru_cache()
def get_user_record_store() -> SQLUserRecordStore:
    """Provide the pooled user record store."""
    return SQLUserRecordStore.from_settings(_settings().database)


@lru_cache()
def get_token_cipher() -> RefreshTokenCipher:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.google.client_secret
    return RefreshTokenCipher(secret=secret)


def get_google_token_service() -> GoogleTokenService:
    """Build the refresh-token lifecycle service."""
    return GoogleTokenService(
        store=get_user_record_store(),
        oauth_client=get_google_oauth_client(),
        state_codec=get_oauth_state_codec(),
        token_cipher=get_token_cipher(),
    )


def get_authorization_initiator() -> AuthorizationInitiator:
    """Build the consent URL builder."""
    return AuthorizationInitiator(
        identity_validator=get_identity_validator(),
        oauth_client=get_google_oauth_client(),
        state_codec=get_oauth_state_codec(),
    )


def get_first_interaction_service() -> FirstInteractionService:
    """Build the first-interaction check."""
    return FirstInteractionService(get_user_record_store())


__all__ = [
    "get_authorization_initiator",
    "get_first_interaction_service",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_identity_validator",
    "get_oauth_state_codec",
    "get_token_cipher",
    "get_user_record_store",
]
