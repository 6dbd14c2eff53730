"""Room access token signing.

Tokens are HS256 JWTs carrying a LiveKit-style ``video`` grant. The media
provider verifies them with the shared service secret, so the segment
encoding and claim names below are a wire format.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any

from ..core.errors import BrokerError

TOKEN_TTL_SECONDS = 86_400
JWT_HEADER: dict[str, str] = {"alg": "HS256", "typ": "JWT"}


@dataclass(slots=True)
class VideoGrant:
    room: str
    room_join: bool = True
    can_publish: bool = True
    can_subscribe: bool = True
    can_publish_data: bool = True

    def to_claims(self) -> dict[str, Any]:
        return {
            "roomJoin": self.room_join,
            "room": self.room,
            "canPublish": self.can_publish,
            "canSubscribe": self.can_subscribe,
            "canPublishData": self.can_publish_data,
        }


def sign_access_token(
    api_key: str,
    api_secret: str,
    room_name: str,
    identity: str,
    name: str,
    now: int,
) -> str:
    """Return a signed token granting ``identity`` full media rights in one room.

    ``now`` is a unix timestamp in seconds; the token is valid from ``now`` for
    twenty-four hours.
    """

    if not room_name:
        raise BrokerError.invalid_argument("Room name is required")
    if not identity:
        raise BrokerError.invalid_argument("Participant identity is required")
    if not api_key or not api_secret:
        raise BrokerError.invalid_argument("Signing credentials are required")

    claims: dict[str, Any] = {
        "iss": api_key,
        "sub": identity,
        "name": name,
        "nbf": now,
        "exp": now + TOKEN_TTL_SECONDS,
        "iat": now,
        "video": VideoGrant(room=room_name).to_claims(),
    }

    signing_input = f"{_encode_json(JWT_HEADER)}.{_encode_json(claims)}"
    signature = _sign(api_secret, signing_input)
    return f"{signing_input}.{_b64url_encode(signature)}"


def decode_access_token(token: str, api_secret: str, *, now: int | None = None) -> dict[str, Any]:
    """Verify a token signed by :func:`sign_access_token` and return its claims.

    When ``now`` is given the ``nbf``/``exp`` window is enforced as well.
    """

    parts = token.split(".")
    if len(parts) != 3:
        raise BrokerError.invalid_argument("Malformed token")

    header_b64, claims_b64, signature_b64 = parts
    try:
        header = json.loads(_b64url_decode(header_b64))
        claims = json.loads(_b64url_decode(claims_b64))
        signature = _b64url_decode(signature_b64)
    except (binascii.Error, ValueError) as exc:
        raise BrokerError.invalid_argument("Malformed token") from exc
    if not isinstance(header, dict) or not isinstance(claims, dict):
        raise BrokerError.invalid_argument("Malformed token")

    if header.get("alg") != JWT_HEADER["alg"]:
        raise BrokerError.invalid_argument("Unsupported token algorithm")

    expected = _sign(api_secret, f"{header_b64}.{claims_b64}")
    if not hmac.compare_digest(signature, expected):
        raise BrokerError.invalid_argument("Invalid token signature")

    if now is not None:
        if now < int(claims.get("nbf", 0)):
            raise BrokerError.invalid_argument("Token not yet valid")
        if now >= int(claims.get("exp", 0)):
            raise BrokerError.invalid_argument("Token expired")

    return claims


def _sign(secret: str, signing_input: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()


def _encode_json(value: dict[str, Any]) -> str:
    compact = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return _b64url_encode(compact.encode("utf-8"))


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)
