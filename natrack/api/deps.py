"""
natrack.api.deps — Request dependencies: DB session and caller identity
=========================================================================

NaTrack does not log users in itself.  The auth service signs HS256 JWTs
with the shared ``JWT_SECRET``; here we only verify them and read ``sub``
(the NaTrack user id) and ``role`` (``"user"`` or ``"admin"``).  The
secret is checked once at import, so a misconfigured deploy fails on
startup rather than on the first session upload.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from natrack.database.engine import create_db_engine

_WEAK_SECRETS = frozenset({
    "natrack-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Return ``JWT_SECRET``, or raise :class:`RuntimeError` when it is unusable.

    Rejected: unset or blank values, the placeholder from ``.env.example``
    and its relatives, and anything shorter than 32 characters.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Set it to the signing secret shared with the auth service."
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Use the auth service's real signing secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"NaTrack requires at least {_MIN_SECRET_LENGTH}."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


def get_session(engine: Annotated[Engine, Depends(get_engine)]):
    with Session(engine) as session:
        yield session


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate the bearer JWT and return its payload.  Raises 401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return payload


def get_current_admin(user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Like :func:`get_current_user` but raises 403 unless ``role`` is admin."""
    if user.get("role") != "admin":
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return user
