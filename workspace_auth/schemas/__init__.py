"""Public schema exports."""

from .auth import AuthorizationUrlResponse, FirstInteractionResponse, OAuthCallbackResult

__all__ = [
    "AuthorizationUrlResponse",
    "FirstInteractionResponse",
    "OAuthCallbackResult",
]
