"""Authentication service: password hashing and employee-id login."""

from __future__ import annotations

from datetime import timedelta

import structlog
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.core.auth import create_access_token
from signoff.core.config import get_settings
from signoff.infrastructure.db.models import UserModel

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthError(Exception):
    """Base exception for authentication errors."""


class InvalidCredentialsError(AuthError):
    """Raised when login credentials are invalid."""


class UserNotFoundError(AuthError):
    """Raised when user is not found."""


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def login(self, *, user_id: str, password: str) -> dict:
        """
        Authenticate an employee with id and password.

        Returns:
            dict with user data and tokens
        """
        await logger.ainfo("login_attempt", user_id=user_id)

        user = await self.session.scalar(select(UserModel).where(UserModel.id == user_id))
        if user is None:
            await logger.awarning("login_user_not_found", user_id=user_id)
            raise InvalidCredentialsError("Invalid id or password")

        if not verify_password(password, user.hashed_password):
            await logger.awarning("login_invalid_password", user_id=user_id)
            raise InvalidCredentialsError("Invalid id or password")

        await logger.ainfo("login_success", user_id=user.id, role=user.role.value)
        return {"user": user_to_dict(user), "tokens": generate_tokens(user)}

    async def get_user_by_id(self, user_id: str) -> dict:
        user = await self.session.scalar(select(UserModel).where(UserModel.id == user_id))
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user_to_dict(user)


def generate_tokens(user: UserModel) -> dict:
    """Issue a bearer access token carrying the user's role."""
    settings = get_settings()
    access_token = create_access_token(
        subject=user.id,
        roles=[user.role.value],
        name=user.name,
        expires_delta=timedelta(seconds=settings.access_token_ttl_seconds),
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.access_token_ttl_seconds,
    }


def user_to_dict(user: UserModel) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "part": user.part,
        "group": user.group,
        "company": user.company.value,
        "role": user.role.value,
        "created_at": user.created_at,
    }
