from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from workspace_auth.clients.google_auth import (
    GOOGLE_WORKSPACE_SCOPES,
    GoogleOAuthClient,
    TokenExchangeError,
    TokenRefreshError,
)


def _token_transport(status_code: int, payload: dict, seen: list[dict]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == GoogleOAuthClient.TOKEN_URL
        seen.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def test_authorization_url_requests_offline_consent_for_all_scopes(google_settings) -> None:
    client = GoogleOAuthClient(google_settings)

    url = client.build_authorization_url(state="opaque-state")

    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == GoogleOAuthClient.AUTH_BASE_URL
    params = parse_qs(parsed.query)
    assert params["client_id"] == ["client"]
    assert params["redirect_uri"] == ["https://example.com/callback"]
    assert params["response_type"] == ["code"]
    assert params["access_type"] == ["offline"]
    assert params["prompt"] == ["consent"]
    assert params["state"] == ["opaque-state"]
    assert tuple(params["scope"][0].split(" ")) == GOOGLE_WORKSPACE_SCOPES
    assert len(GOOGLE_WORKSPACE_SCOPES) == 7


@pytest.mark.asyncio
async def test_exchange_authorization_code_returns_grant(google_settings) -> None:
    seen: list[dict] = []
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(
            200,
            {"access_token": "access", "refresh_token": "refresh", "expires_in": 3599},
            seen,
        ),
    )

    grant = await client.exchange_authorization_code("auth-code")

    assert grant.access_token == "access"
    assert grant.refresh_token == "refresh"
    assert grant.expires_in == 3599
    assert seen == [
        {
            "code": "auth-code",
            "client_id": "client",
            "client_secret": "secret",
            "redirect_uri": "https://example.com/callback",
            "grant_type": "authorization_code",
        }
    ]


@pytest.mark.asyncio
async def test_exchange_authorization_code_raises_on_rejected_code(google_settings) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(400, {"error": "invalid_grant"}, []),
    )

    with pytest.raises(TokenExchangeError, match="invalid_grant"):
        await client.exchange_authorization_code("reused-code")


@pytest.mark.asyncio
async def test_exchange_authorization_code_requires_access_token(google_settings) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(200, {"refresh_token": "refresh", "expires_in": 3599}, []),
    )

    with pytest.raises(TokenExchangeError):
        await client.exchange_authorization_code("auth-code")


@pytest.mark.asyncio
async def test_refresh_access_token_reports_rotated_refresh_token(google_settings) -> None:
    seen: list[dict] = []
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(
            200,
            {"access_token": "fresh", "refresh_token": "rotated", "expires_in": 3600},
            seen,
        ),
    )

    grant = await client.refresh_access_token("stored-refresh")

    assert grant.access_token == "fresh"
    assert grant.refresh_token == "rotated"
    assert seen[0]["grant_type"] == "refresh_token"
    assert seen[0]["refresh_token"] == "stored-refresh"


@pytest.mark.asyncio
async def test_refresh_access_token_without_rotation(google_settings) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(200, {"access_token": "fresh", "expires_in": 3600}, []),
    )

    grant = await client.refresh_access_token("stored-refresh")

    assert grant.refresh_token is None


@pytest.mark.asyncio
async def test_refresh_access_token_raises_refresh_error(google_settings) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(400, {"error": "invalid_grant"}, []),
    )

    with pytest.raises(TokenRefreshError):
        await client.refresh_access_token("revoked")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"access_token": "access", "refresh_token": "refresh"},
        {"access_token": "access", "expires_in": None},
        {"access_token": "access", "expires_in": 0},
        {"access_token": "access", "expires_in": "soon"},
    ],
)
async def test_exchange_authorization_code_requires_token_lifetime(google_settings, payload) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(200, payload, []),
    )

    with pytest.raises(TokenExchangeError, match="Incomplete token payload"):
        await client.exchange_authorization_code("auth-code")


@pytest.mark.asyncio
async def test_refresh_access_token_requires_token_lifetime(google_settings) -> None:
    client = GoogleOAuthClient(
        google_settings,
        transport=_token_transport(200, {"access_token": "fresh"}, []),
    )

    with pytest.raises(TokenRefreshError, match="Incomplete refresh payload"):
        await client.refresh_access_token("stored-refresh")
