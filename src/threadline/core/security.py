"""JWT helpers shared by the API layer and operator tooling.

Tokens are normally issued by the external auth collaborator; the API only
needs to decode them. ``create_access_token`` exists for operators and tests.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from threadline.core.settings import settings
from threadline.db.time import utcnow


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Return a signed bearer token whose subject is ``user_id``."""
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload: dict[str, Any] = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises:
        JWTError: If the token is invalid, expired or has no usable subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise JWTError("Token subject is not a user id") from err
