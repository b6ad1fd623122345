"""Service layer exports."""

from .authorization import AuthorizationInitiator
from .google_session import AuthorizedGoogleSession
from .google_tokens import (
    CodeExchangeResult,
    GoogleTokenService,
    MissingAuthorizationError,
)
from .interactions import FirstInteractionService, MissingIdentifierError
from .token_cipher import RefreshTokenCipher

__all__ = [
    "AuthorizationInitiator",
    "AuthorizedGoogleSession",
    "CodeExchangeResult",
    "FirstInteractionService",
    "GoogleTokenService",
    "MissingAuthorizationError",
    "MissingIdentifierError",
    "RefreshTokenCipher",
]
