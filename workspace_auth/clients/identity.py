"""Validation of identity tokens handed to the bot by the messaging backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from jose import JWTError, jwt

from workspace_auth.core.config import IdentitySettings


class InvalidIdentityError(Exception):
    """Raised when an identity token is invalid, expired, or lacks a phone."""


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    phone: str


class IdentityTokenValidator:
    """Verify signed identity tokens and extract the messaging user's phone."""

    def __init__(
        self,
        *,
        secret: str,
        algorithms: Sequence[str] = ("HS256",),
        phone_claim: str = "phone",
    ) -> None:
        if not secret:
            raise ValueError("Identity token secret must be provided.")
        self._secret = secret
        self._algorithms = list(algorithms)
        self._phone_claim = phone_claim

    @classmethod
    def from_settings(cls, settings: IdentitySettings) -> "IdentityTokenValidator":
        return cls(
            secret=settings.jwt_secret,
            algorithms=(settings.jwt_algorithm,),
            phone_claim=settings.phone_claim,
        )

    def validate(self, token: str) -> IdentityClaims:
        """Return the claims carried by ``token`` or raise ``InvalidIdentityError``."""
        if not token:
            raise InvalidIdentityError("Identity token is missing.")
        try:
            payload = jwt.decode(token, self._secret, algorithms=self._algorithms)
        except JWTError as exc:
            raise InvalidIdentityError("Identity token could not be verified.") from exc

        phone = payload.get(self._phone_claim)
        if not phone:
            raise InvalidIdentityError(
                f"Identity token has no '{self._phone_claim}' claim."
            )
        return IdentityClaims(phone=str(phone))


__all__ = ["IdentityClaims", "IdentityTokenValidator", "InvalidIdentityError"]
