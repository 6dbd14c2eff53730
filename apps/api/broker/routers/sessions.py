"""Token issuance and session finalization endpoints."""
from __future__ import annotations

from typing import TypeVar

import httpx
from fastapi import APIRouter, Depends, Header, Request, Response, status
from pydantic import BaseModel, ValidationError

from ..core.config import Settings, get_settings
from ..core.errors import BrokerError
from ..db.session import SessionLocal
from ..schemas import sessions as schemas
from ..services.identity import IdentityResolver, SupabaseIdentityResolver
from ..services.session_store import SessionStore, SqlSessionStore
from ..services.sessions import SessionFinalizer
from ..services.tokens import TokenIssuer

router = APIRouter()

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": schemas.ErrorResponse},
}

BodyT = TypeVar("BodyT", bound=BaseModel)


def get_identity_resolver(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> IdentityResolver:
    client: httpx.AsyncClient = request.app.state.http_client
    return SupabaseIdentityResolver(
        client,
        base_url=settings.supabase_url,
        api_key=settings.supabase_service_role_key,
    )


def get_session_store() -> SessionStore:
    return SqlSessionStore(SessionLocal)


def get_token_issuer(
    identity: IdentityResolver = Depends(get_identity_resolver),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> TokenIssuer:
    return TokenIssuer(
        identity=identity,
        store=store,
        signing=settings.signing_config(),
        default_participant_name=settings.default_participant_name,
    )


def get_session_finalizer(
    identity: IdentityResolver = Depends(get_identity_resolver),
    store: SessionStore = Depends(get_session_store),
) -> SessionFinalizer:
    return SessionFinalizer(identity=identity, store=store)


async def read_body(request: Request, model: type[BodyT]) -> BodyT:
    """Parse the JSON body into ``model``; called only once the caller is known."""

    try:
        data = await request.json()
    except ValueError as exc:
        raise BrokerError.invalid_argument("Invalid request body") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise BrokerError.invalid_argument("Invalid request body") from exc


def json_body(model: type[BaseModel]) -> dict:
    """OpenAPI request body for handlers that read the body themselves."""

    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


def cors_headers(settings: Settings, origin: str | None) -> dict[str, str]:
    """CORS headers for a bare preflight, honouring the configured origins."""

    headers = {"Access-Control-Allow-Headers": ALLOWED_HEADERS}
    if "*" in settings.cors_allow_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in settings.cors_allow_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


@router.post(
    "/livekit-token",
    response_model=schemas.IssueTokenResponse,
    response_model_exclude_unset=True,
    responses=ERROR_RESPONSES,
    openapi_extra=json_body(schemas.IssueTokenRequest),
)
async def issue_token(
    request: Request,
    authorization: str | None = Header(default=None),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> schemas.IssueTokenResponse:
    """Return a room access token for one of the caller's agents."""

    caller = await issuer.authorize(authorization)
    payload = await read_body(request, schemas.IssueTokenRequest)
    return await issuer.issue_for(caller, payload)


@router.post(
    "/end-voice-session",
    response_model=schemas.EndSessionResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=json_body(schemas.EndSessionRequest),
)
async def end_voice_session(
    request: Request,
    authorization: str | None = Header(default=None),
    finalizer: SessionFinalizer = Depends(get_session_finalizer),
) -> schemas.EndSessionResponse:
    """Close a voice session and record the call."""

    caller = await finalizer.authorize(authorization)
    payload = await read_body(request, schemas.EndSessionRequest)
    return await finalizer.finalize_for(caller, payload)


@router.options("/livekit-token", include_in_schema=False)
@router.options("/end-voice-session", include_in_schema=False)
async def preflight(
    origin: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Answer bare preflight requests with CORS headers only."""

    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=cors_headers(settings, origin))
