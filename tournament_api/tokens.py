"""Stateless session tokens.

A token is ``base64(json_claims) + "." + hex(hmac_sha256(secret, json_claims))``.
The claims carry an absolute expiry (``exp``, epoch milliseconds). Nothing is
stored server-side, so a token stays valid until it expires.

``verify_token`` never raises: every way a token can be wrong comes back as an
``Invalid`` result with a reason, so callers treat all of them as
"not authenticated" while tests can still tell them apart.
"""

from __future__ import annotations

import base64
import binascii
import enum
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tournament_api.config import TOKEN_LIFETIME_SECONDS


class SessionClaims(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="_id")
    username: str
    role: str
    is_active: bool = Field(default=True, alias="isActive")
    exp: int


class InvalidReason(str, enum.Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Valid:
    claims: SessionClaims


@dataclass(frozen=True)
class Invalid:
    reason: InvalidReason


TokenResult = Union[Valid, Invalid]


def _now_ms(now: Optional[float]) -> int:
    return int((time.time() if now is None else now) * 1000)


def _sign(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def issue_token(
    claims: Mapping[str, Any],
    secret: str,
    *,
    lifetime_seconds: int = TOKEN_LIFETIME_SECONDS,
    now: Optional[float] = None,
) -> str:
    """Sign ``claims`` (``_id``, ``username``, ``role``, ``isActive``) into a token."""
    body = {key: value for key, value in claims.items() if key != "exp"}
    body["exp"] = _now_ms(now) + lifetime_seconds * 1000
    payload = json.dumps(body, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(payload).decode("ascii") + "." + _sign(payload, secret)


def verify_token(token: Optional[str], secret: str, *, now: Optional[float] = None) -> TokenResult:
    if not token or "." not in token:
        return Invalid(InvalidReason.MALFORMED)

    encoded, signature = token.split(".", 1)
    if not encoded or not signature:
        return Invalid(InvalidReason.MALFORMED)

    try:
        payload = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return Invalid(InvalidReason.MALFORMED)

    expected = _sign(payload, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
        return Invalid(InvalidReason.BAD_SIGNATURE)

    # pydantic's ValidationError and JSONDecodeError are both ValueErrors.
    try:
        data = json.loads(payload.decode("utf-8"))
        if not isinstance(data, dict):
            return Invalid(InvalidReason.MALFORMED)
        claims = SessionClaims.model_validate(data)
    except (UnicodeDecodeError, ValueError):
        return Invalid(InvalidReason.MALFORMED)

    if _now_ms(now) > claims.exp:
        return Invalid(InvalidReason.EXPIRED)
    return Valid(claims)


def claims_for_user(user: Any) -> dict:
    """Claims for a stored admin account (anything with id/username/role/is_active)."""
    return {
        "_id": user.id,
        "username": user.username,
        "role": user.role,
        "isActive": user.is_active,
    }
