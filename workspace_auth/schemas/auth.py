"""Schemas related to the Google linking flow."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AuthorizationUrlResponse(BaseModel):
    """Consent URL returned to JSON clients."""

    authorization_url: str = Field(..., description="Google consent screen URL.")


class OAuthCallbackResult(BaseModel):
    """Outcome of a completed OAuth callback."""

    status: str = Field("connected")
    session_id: str = Field(..., description="Bot session the flow was started from.")
    redirect_to: Optional[str] = None


class FirstInteractionResponse(BaseModel):
    phone: str
    first_interaction: bool


__all__ = [
    "AuthorizationUrlResponse",
    "FirstInteractionResponse",
    "OAuthCallbackResult",
]
