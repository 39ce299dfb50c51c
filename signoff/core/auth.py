"""Bearer tokens for employee-id login.

A token's subject is the employee id; ``roles`` holds exactly the account's
role, and ``name`` carries the display name shown in the admin header.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from enum import Enum

import jwt

from signoff.core.config import get_settings


class TokenError(Exception):
    """Raised when a token cannot be decoded or validated."""


class Role(str, Enum):
    """Account roles; ``user`` is every rostered employee."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {role.value for role in cls}


def create_access_token(
    subject: str,
    *,
    roles: Sequence[str],
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token for an employee id."""
    settings = get_settings()

    invalid_roles = [role for role in roles if role not in settings.allowed_roles]
    if invalid_roles:
        raise TokenError(f"Unsupported role(s): {', '.join(invalid_roles)}")

    issued_at = datetime.now(UTC)
    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    claims = {
        "sub": subject,
        "roles": list(roles),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + ttl).timestamp()),
        "iss": settings.app_name,
    }
    if name:
        claims["name"] = name

    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry; returns the claims (``sub``, ``roles``, ``name``)."""
    settings = get_settings()

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "roles", "exp"]},
        )
    except jwt.PyJWTError as exc:
        raise TokenError("Invalid or expired token") from exc

    _ensure_roles(claims.get("roles", []))
    return claims


def _ensure_roles(roles: Iterable[str]) -> None:
    for role in roles:
        if not Role.contains(role):
            raise TokenError(f"Unsupported role: {role}")
