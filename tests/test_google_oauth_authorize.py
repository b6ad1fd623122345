import copy
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from jose import jwt

from workspace_auth.clients.google_auth import (
    AuthorizationState,
    OAuthStateCodec,
    TokenExchangeError,
)
from workspace_auth.main import app
from workspace_auth.services.google_tokens import CodeExchangeResult
from workspace_auth.services.interactions import MissingIdentifierError


class DummyTokenService:
    def __init__(self) -> None:
        self.exchanges: list[tuple[str, str]] = []
        self.reject_codes: set[str] = set()
        self.decoded_states = 0

    async def exchange_code_for_token(
        self, code: str, encoded_state: str
    ) -> CodeExchangeResult:
        state = OAuthStateCodec().decode(encoded_state)
        self.decoded_states += 1
        if code in self.reject_codes:
            raise TokenExchangeError("invalid_grant")
        self.exchanges.append((code, encoded_state))
        return CodeExchangeResult(
            session_id=state.session_id,
            phone=state.phone,
            access_token="access-token",
        )


class DummyInteractionService:
    def __init__(self) -> None:
        self.known: set[str] = {"+5559999"}

    async def is_first_interaction(self, phone):
        if not phone:
            raise MissingIdentifierError("Phone number is empty or undefined.")
        return phone not in self.known


def _identity_token(phone: str = "+5551234") -> str:
    return jwt.encode({"phone": phone}, "test-jwt-secret", algorithm="HS256")


def _state(session_id: str = "SID-1", phone: str = "+5551234") -> str:
    return OAuthStateCodec().encode(AuthorizationState(session_id=session_id, phone=phone))


@pytest.fixture()
def overrides():
    from workspace_auth import dependencies
    from workspace_auth.core.config import get_settings

    token_service = DummyTokenService()
    interactions = DummyInteractionService()
    base_settings = copy.deepcopy(get_settings())
    base_settings.frontend_base_url = None

    app.dependency_overrides.update(
        {
            dependencies.get_google_token_service: lambda: token_service,
            dependencies.get_first_interaction_service: lambda: interactions,
            dependencies.get_app_settings: lambda: base_settings,
        }
    )

    yield token_service, base_settings

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


@pytest.mark.anyio
async def test_authorize_returns_json_by_default(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/auth/google/authorize",
            params={"session_id": "SID-1", "token": _identity_token()},
        )

    assert response.status_code == 200
    url = response.json()["authorization_url"]
    params = parse_qs(urlparse(url).query)
    assert params["access_type"] == ["offline"]
    assert params["prompt"] == ["consent"]
    assert OAuthStateCodec().decode(params["state"][0]).phone == "+5551234"


@pytest.mark.anyio
async def test_authorize_redirects_for_html_accept(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/auth/google/authorize",
            params={"session_id": "SID-1", "token": _identity_token()},
            headers={"accept": "text/html"},
        )

    assert response.status_code == 307
    assert response.headers["location"].startswith(
        "https://accounts.google.com/o/oauth2/v2/auth"
    )


@pytest.mark.anyio
async def test_authorize_rejects_invalid_identity(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/auth/google/authorize",
            params={"session_id": "SID-1", "token": "forged"},
        )

    assert response.status_code == 401


@pytest.mark.anyio
async def test_callback_returns_json_when_no_frontend(overrides):
    token_service, _ = overrides

    async with _client() as client:
        response = await client.get(
            "/api/auth/google/callback",
            params={"state": _state(), "code": "oauth-code"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "connected"
    assert data["session_id"] == "SID-1"
    assert "access-token" not in response.text
    assert token_service.exchanges[-1][0] == "oauth-code"


@pytest.mark.anyio
async def test_callback_takes_session_from_exchange_result(overrides):
    token_service, _ = overrides
    state = _state(session_id="SID-42", phone="+5557777")

    async with _client() as client:
        response = await client.get(
            "/api/auth/google/callback",
            params={"state": state, "code": "oauth-code"},
        )

    assert response.status_code == 200
    assert response.json()["session_id"] == "SID-42"
    assert token_service.exchanges == [("oauth-code", state)]
    assert token_service.decoded_states == 1


@pytest.mark.anyio
async def test_callback_redirects_when_frontend_available(overrides):
    _, settings = overrides
    settings.frontend_base_url = "https://app.example.com/linked"

    async with _client() as client:
        response = await client.get(
            "/api/auth/google/callback",
            params={"state": _state(), "code": "oauth-code"},
            headers={"accept": "text/html"},
        )

    assert response.status_code == 307
    assert response.headers["location"] == "https://app.example.com/linked"


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("state", "code"),
    [("not-a-state", "oauth-code"), (None, "rejected-code")],
)
async def test_callback_rejects_bad_state_or_code(overrides, state, code):
    token_service, _ = overrides
    token_service.reject_codes.add("rejected-code")

    async with _client() as client:
        response = await client.get(
            "/api/auth/google/callback",
            params={"state": state or _state(), "code": code},
        )

    assert response.status_code == 400
    assert token_service.exchanges == []


@pytest.mark.anyio
async def test_first_interaction_endpoint(overrides):
    async with _client() as client:
        new_user = await client.get(
            "/api/users/first-interaction", params={"phone": "+5551234"}
        )
        known_user = await client.get(
            "/api/users/first-interaction", params={"phone": "+5559999"}
        )
        missing = await client.get("/api/users/first-interaction")

    assert new_user.json() == {"phone": "+5551234", "first_interaction": True}
    assert known_user.json()["first_interaction"] is False
    assert missing.status_code == 400
