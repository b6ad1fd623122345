"""Encryption at rest for stored refresh tokens."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class RefreshTokenCipher:
    """Fernet cipher keyed from a configured secret of any length."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, refresh_token: str) -> str:
        return self._fernet.encrypt(refresh_token.encode("utf-8")).decode("utf-8")

    def decrypt(self, stored_value: str) -> str:
        """Return the plaintext token; ``ValueError`` for foreign or tampered values."""
        try:
            plaintext = self._fernet.decrypt(stored_value.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError("Stored refresh token could not be decrypted.") from exc
        return plaintext.decode("utf-8")


__all__ = ["RefreshTokenCipher"]
