from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.core.config import get_settings
from signoff.domain.models import Company, Employee, UserRole
from signoff.domain.services.auth_service import hash_password
from signoff.infrastructure.db.models import NotificationModel, UserModel
from signoff.infrastructure.repositories.snapshots import employee_from_model, load_roster

logger = structlog.get_logger()


class RosterError(Exception):
    """Base exception for roster operations."""


class InvalidUserIdError(RosterError):
    """Raised when an employee id does not match its company's format."""


class UserExistsError(RosterError):
    """Raised when registering an id that is already on the roster."""


class UserNotFoundError(RosterError):
    """Raised when an employee id is not on the roster."""


class AdminDeletionError(RosterError):
    """Raised when attempting to delete an administrator account."""


@dataclass(slots=True)
class ImportResult:
    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def validate_user_id(user_id: str, company: Company) -> None:
    if not user_id.isdigit() or len(user_id) != company.id_length:
        raise InvalidUserIdError(
            f"{company.value} ids must be {company.id_length} digits, got '{user_id}'"
        )


class RosterService:
    """Registration, import and removal of roster members."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_roster(self) -> list[Employee]:
        return await load_roster(self.session)

    async def list_users(self, *, company: Company | None = None) -> list[Employee]:
        stmt = select(UserModel).order_by(UserModel.company, UserModel.part, UserModel.id)
        if company is not None:
            stmt = stmt.where(UserModel.company == company)
        users = (await self.session.execute(stmt)).scalars().all()
        return [employee_from_model(user) for user in users]

    async def get_user(self, user_id: str) -> Employee:
        user = await self.session.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return employee_from_model(user)

    async def register(
        self,
        *,
        user_id: str,
        name: str,
        part: str,
        group: str,
        company: Company,
        password: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> Employee:
        validate_user_id(user_id, company)

        user = UserModel(
            id=user_id,
            name=name.strip(),
            part=part or "N/A",
            group=group or "N/A",
            company=company,
            role=role,
            hashed_password=hash_password(password or get_settings().default_password),
        )
        try:
            self.session.add(user)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            await logger.awarning("register_duplicate_id", user_id=user_id)
            raise UserExistsError(f"User {user_id} already exists") from exc

        await logger.ainfo("user_registered", user_id=user_id, company=company.value)
        return employee_from_model(user)

    async def import_users(self, rows: Iterable[Mapping[str, str]]) -> ImportResult:
        """Add pre-parsed roster rows, inferring company from id length.

        Rows are de-duplicated by id (last one wins); ids already on the
        roster are skipped rather than overwritten, as are ids that fit
        neither the 8-digit nor the 12-digit format.
        """
        unique: dict[str, Mapping[str, str]] = {}
        for row in rows:
            user_id = str(row.get("id", "")).strip()
            if user_id and row.get("name"):
                unique[user_id] = row

        existing = set(
            (
                await self.session.execute(
                    select(UserModel.id).where(UserModel.id.in_(list(unique)))
                )
            )
            .scalars()
            .all()
        )

        result = ImportResult()
        # One hash for the whole batch; every imported account starts with the default
        default_hash = hash_password(get_settings().default_password)
        for user_id, row in unique.items():
            company = Company.from_user_id(user_id)
            if user_id in existing:
                result.skipped.append(user_id)
                continue
            try:
                validate_user_id(user_id, company)
            except InvalidUserIdError:
                await logger.awarning("import_invalid_id", user_id=user_id)
                result.skipped.append(user_id)
                continue
            self.session.add(
                UserModel(
                    id=user_id,
                    name=str(row["name"]).strip(),
                    part=row.get("part") or "N/A",
                    group=row.get("group") or "N/A",
                    company=company,
                    role=UserRole.USER,
                    hashed_password=default_hash,
                )
            )
            result.created.append(user_id)

        await self.session.commit()
        await logger.ainfo(
            "roster_imported",
            created_count=len(result.created),
            skipped_count=len(result.skipped),
        )
        return result

    async def delete_user(self, user_id: str) -> None:
        user = await self.session.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        if user.role is UserRole.ADMIN:
            raise AdminDeletionError("Administrator accounts cannot be deleted")

        # Completion history stays on its courses
        await self.session.execute(
            delete(NotificationModel).where(NotificationModel.user_id == user_id)
        )
        await self.session.execute(delete(UserModel).where(UserModel.id == user_id))
        await self.session.commit()
        await logger.ainfo("user_deleted", user_id=user_id)
