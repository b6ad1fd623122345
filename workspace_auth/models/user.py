"""
Domain model for the per-phone user record.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    """Represents a bot user row keyed by phone number."""

    phone: str = Field(..., description="Messaging provider phone identifier.")
    refresh_token: Optional[str] = Field(
        None,
        description="Stored (encrypted) Google refresh token, absent until linked.",
    )


__all__ = ["UserRecord"]
