"""Caller identity resolution against the Supabase auth API."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from ..core.errors import BrokerError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    id: str
    email: str | None = None


class IdentityResolver(Protocol):
    async def resolve(self, access_token: str) -> CallerIdentity | None:
        """Return the identity behind ``access_token`` or None when it is rejected."""


class SupabaseIdentityResolver:
    """Look up the user for a bearer token via ``GET /auth/v1/user``."""

    def __init__(self, client: httpx.AsyncClient, *, base_url: str, api_key: str) -> None:
        self._client = client
        self._url = f"{base_url.rstrip('/')}/auth/v1/user"
        self._api_key = api_key

    async def resolve(self, access_token: str) -> CallerIdentity | None:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "apikey": self._api_key,
        }
        try:
            response = await self._client.get(self._url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider request failed: %s", exc)
            return None

        if response.status_code != httpx.codes.OK:
            logger.warning("Identity provider rejected token (status %s)", response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Identity provider returned a non-JSON body")
            return None

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return CallerIdentity(id=str(user_id), email=payload.get("email"))


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization`` header value."""

    if not authorization or not authorization.strip():
        raise BrokerError.unauthenticated()

    value = authorization.strip()
    scheme, _, token = value.partition(" ")
    if scheme.lower() == "bearer":
        value = token.strip()
    if not value:
        raise BrokerError.unauthenticated()
    return value


async def authenticate(resolver: IdentityResolver, authorization: str | None) -> CallerIdentity:
    """Resolve the caller for a request or raise an unauthenticated error."""

    identity = await resolver.resolve(bearer_token(authorization))
    if identity is None:
        raise BrokerError.unauthenticated()
    return identity
