"""
petsconnect.api.deps — FastAPI dependency injection
====================================================
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

from petsconnect.config import PetsConnectConfig, load_config
from petsconnect.database.engine import create_db_engine

_WEAK_SECRETS = frozenset({
    "petsconnect-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()

# Supabase-issued access tokens carry aud="authenticated".  Unset skips the check.
JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> PetsConnectConfig:
    return load_config()


def get_session(engine: Annotated[Engine, Depends(get_engine)]):
    """Read-only request session; handlers that write open their own."""
    with Session(engine) as session:
        yield session


def get_current_profile_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Return the acting profile id (``sub``) from the bearer token.

    Tokens are issued by the auth service; this only verifies them.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            options={"verify_aud": JWT_AUDIENCE is not None},
        )
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    profile_id = payload.get("sub")
    if not profile_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return str(profile_id)


def get_optional_profile_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Like :func:`get_current_profile_id`, but anonymous reads get ``None``."""
    if not authorization:
        return None
    return get_current_profile_id(authorization)
