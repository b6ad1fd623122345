"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_authorization_initiator,
    get_first_interaction_service,
    get_google_oauth_client,
    get_google_token_service,
    get_identity_validator,
    get_oauth_state_codec,
    get_token_cipher,
    get_user_record_store,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_authorization_initiator",
    "get_first_interaction_service",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_identity_validator",
    "get_oauth_state_codec",
    "get_token_cipher",
    "get_user_record_store",
]
