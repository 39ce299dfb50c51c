"""Authentication routes - login, self-registration, profile."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.api.deps import get_current_user, get_db_session
from signoff.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from signoff.domain import User
from signoff.domain.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    UserNotFoundError,
)
from signoff.domain.services.roster import InvalidUserIdError, RosterService, UserExistsError

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register as an employee",
    description="Create a standard roster entry; the default password applies when none is given.",
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    service = RosterService(session)
    try:
        employee = await service.register(
            user_id=payload.user_id,
            name=payload.name,
            part=payload.part,
            group=payload.group,
            company=payload.company,
            password=payload.password,
        )
    except InvalidUserIdError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except UserExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return UserResponse(
        id=employee.id,
        name=employee.name,
        part=employee.part,
        group=employee.group,
        company=employee.company.value,
        role=employee.role.value,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Employee login",
    description="Authenticate with employee id and password, returns a JWT access token.",
)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    service = AuthService(session)

    try:
        result = await service.login(user_id=payload.user_id, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return LoginResponse(
        message="Login successful",
        user=UserResponse(**result["user"]),
        tokens=TokenResponse(**result["tokens"]),
    )


@router.get("/me", response_model=MeResponse, summary="Get current user")
async def get_me(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    service = AuthService(session)

    try:
        user_data = await service.get_user_by_id(user.user_id)
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return MeResponse(user=UserResponse(**user_data))
