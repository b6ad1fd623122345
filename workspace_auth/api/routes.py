"""
FastAPI routes for linking a bot user's Google account.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from workspace_auth.clients.google_auth import StateDecodingError, TokenExchangeError
from workspace_auth.clients.identity import InvalidIdentityError
from workspace_auth.dependencies import (
    get_app_settings,
    get_authorization_initiator,
    get_first_interaction_service,
    get_google_token_service,
)
from workspace_auth.schemas import (
    AuthorizationUrlResponse,
    FirstInteractionResponse,
    OAuthCallbackResult,
)
from workspace_auth.services.interactions import MissingIdentifierError

router = APIRouter()
logger = logging.getLogger(__name__)


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/google/authorize", status_code=HTTPStatus.OK)
async def start_google_oauth_flow(
    request: Request,
    initiator: Annotated[Any, Depends(get_authorization_initiator)],
    session_id: str = Query(..., description="Bot conversation session identifier."),
    token: str = Query(..., description="Identity token carrying the user's phone."),
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Google consent screen.",
    ),
) -> Response:
    """Validate the caller's identity and hand out the Google consent URL."""
    try:
        authorization_url = initiator.build_authorization_url(session_id, token)
    except InvalidIdentityError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Identity token is invalid or expired.",
        ) from exc

    if redirect or _wants_html(request):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    body = AuthorizationUrlResponse(authorization_url=authorization_url)
    return JSONResponse(content=body.model_dump())


@router.get("/auth/google/callback", status_code=HTTPStatus.OK)
async def handle_google_oauth_callback(
    request: Request,
    token_service: Annotated[Any, Depends(get_google_token_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    state: str = Query(..., description="OAuth state token."),
    code: str = Query(..., description="Authorization code returned by Google."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    """Complete the OAuth exchange and store the user's refresh token."""
    try:
        exchange = await token_service.exchange_code_for_token(code, state)
    except StateDecodingError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="OAuth state is malformed.",
        ) from exc
    except TokenExchangeError as exc:
        logger.warning("Google rejected authorization code: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Failed to exchange authorization code.",
        ) from exc

    redirect_target = settings.frontend_base_url
    result = OAuthCallbackResult(
        session_id=exchange.session_id,
        redirect_to=str(redirect_target) if redirect_target else None,
    )
    if redirect_target and (redirect or _wants_html(request)):
        return RedirectResponse(url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return JSONResponse(content=result.model_dump())


@router.get(
    "/users/first-interaction",
    response_model=FirstInteractionResponse,
    status_code=HTTPStatus.OK,
)
async def check_first_interaction(
    service: Annotated[Any, Depends(get_first_interaction_service)],
    phone: str = Query("", description="Phone number reported by the messaging webhook."),
) -> FirstInteractionResponse:
    """Tell the webhook layer whether to route this contact to account linking."""
    try:
        first = await service.is_first_interaction(phone)
    except MissingIdentifierError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    return FirstInteractionResponse(phone=phone, first_interaction=first)


__all__ = ["router"]
