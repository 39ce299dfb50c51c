from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.api.deps import get_db_session, require_roles
from signoff.api.schemas.auth import (
    ImportRequest,
    ImportResponse,
    RegisterRequest,
    UserResponse,
    UsersResponse,
)
from signoff.domain import Company, Employee, User
from signoff.domain.services.roster import (
    AdminDeletionError,
    InvalidUserIdError,
    RosterService,
    UserExistsError,
    UserNotFoundError,
)

router = APIRouter(prefix="/users", tags=["Roster"])
logger = structlog.get_logger()


def _to_response(employee: Employee) -> UserResponse:
    return UserResponse(
        id=employee.id,
        name=employee.name,
        part=employee.part,
        group=employee.group,
        company=employee.company.value,
        role=employee.role.value,
    )


@router.get("", response_model=UsersResponse)
async def list_users(
    company: Company | None = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_roles(["admin"])),
) -> UsersResponse:
    """List the roster, optionally for one company category."""
    employees = await RosterService(session).list_users(company=company)
    return UsersResponse(users=[_to_response(employee) for employee in employees])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def add_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["admin"])),
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

    logger.info("roster_user_added", user_id=employee.id, admin_user=user.user_id)
    return _to_response(employee)


@router.post("/import", response_model=ImportResponse)
async def import_users(
    payload: ImportRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_roles(["admin"])),
) -> ImportResponse:
    """Bulk-add parsed spreadsheet rows; existing ids are skipped."""
    result = await RosterService(session).import_users(
        [row.model_dump() for row in payload.rows]
    )
    return ImportResponse(created=result.created, skipped=result.skipped)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["admin"])),
) -> None:
    try:
        await RosterService(session).delete_user(user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except AdminDeletionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    logger.info("roster_user_deleted", user_id=user_id, admin_user=user.user_id)
