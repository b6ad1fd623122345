"""
Application configuration models and helpers.

Settings are grouped per concern and read from the process environment so the
HTTP surface and the token services share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

_SETTINGS_CONFIG = SettingsConfigDict(extra="ignore")


class GoogleSettings(BaseSettings):
    """Configuration required for the Google OAuth client."""

    model_config = _SETTINGS_CONFIG

    client_id: str = Field(..., alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., alias="GOOGLE_REDIRECT_URI")


class IdentitySettings(BaseSettings):
    """Settings for validating identity tokens issued by the bot backend."""

    model_config = _SETTINGS_CONFIG

    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    phone_claim: str = Field(
        "phone",
        alias="JWT_PHONE_CLAIM",
        description="Claim carrying the messaging user's phone number.",
    )


class DatabaseSettings(BaseSettings):
    """Connection parameters for the user record store."""

    model_config = _SETTINGS_CONFIG

    url: Optional[str] = Field(
        None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy URL. Overrides the socket settings below.",
    )
    socket_path: Optional[str] = Field(
        None,
        alias="DB_SOCKET_PATH",
        description="Unix socket of the MySQL instance (e.g. Cloud SQL).",
    )
    user: Optional[str] = Field(None, alias="DB_USER")
    password: Optional[str] = Field(None, alias="DB_PASSWORD")
    name: Optional[str] = Field(None, alias="DB_NAME")
    pool_size: int = Field(10, alias="DB_POOL_SIZE")
    pool_timeout: Optional[float] = Field(
        None,
        alias="DB_POOL_TIMEOUT",
        description="Seconds to wait for a pooled connection. Unset waits forever.",
    )

    def sqlalchemy_url(self) -> URL | str:
        """Return the URL used to build the store engine."""
        if self.url:
            return self.url
        if not self.name or not self.user:
            raise ValueError(
                "DATABASE_URL or DB_NAME and DB_USER must be configured."
            )
        query = {"unix_socket": self.socket_path} if self.socket_path else {}
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password,
            database=self.name,
            query=query,
        )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _SETTINGS_CONFIG

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    # Keeps a bare DATABASE variable from being read as the nested group.
    model_config = SettingsConfigDict(extra="ignore", env_prefix="WORKSPACE_AUTH_")

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Optional page users land on after linking their account.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "GoogleSettings",
    "IdentitySettings",
    "SecuritySettings",
    "get_settings",
]
