"""JWT helpers for access tokens.

Uses HS256 with the application's secret key and validates the issuer.
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt
from jwt import InvalidTokenError

from snapshoot.settings import settings


ISSUER = "snapshoot-api"


def encode_access(payload: dict[str, object], *, ttl_minutes: int | None = None) -> str:
    """Encode an access token; ``exp`` defaults to now + the configured TTL."""
    now = int(time.time())
    ttl = settings.access_ttl_minutes if ttl_minutes is None else ttl_minutes
    body: Dict[str, Any] = {"iss": ISSUER, "iat": now, "exp": now + ttl * 60}
    body.update(payload)
    return jwt.encode(body, settings.secret_key, algorithm="HS256")


def decode_access(token: str) -> dict[str, object]:
    """Decode and validate an access token.

    Raises jwt.InvalidTokenError subclasses on failure.
    """
    options = {"require": ["exp", "iat", "iss", "sub"]}
    payload = jwt.decode(
        token,
        settings.secret_key,
        algorithms=["HS256"],
        issuer=ISSUER,
        leeway=5,
        options=options,
    )
    if not payload.get("sub"):
        raise InvalidTokenError("missing_claim:sub")
    return payload  # type: ignore[return-value]
