"""Expose constructed client wrappers."""

from .google_auth import GoogleOAuthClient, OAuthStateCodec
from .identity import IdentityTokenValidator
from .user_store import SQLUserRecordStore, UserRecordStore

__all__ = [
    "GoogleOAuthClient",
    "IdentityTokenValidator",
    "OAuthStateCodec",
    "SQLUserRecordStore",
    "UserRecordStore",
]
