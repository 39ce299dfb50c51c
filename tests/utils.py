from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signoff.api.deps import issue_smoke_token
from signoff.core.auth import Role
from signoff.domain.models import (
    Company,
    Completion,
    Course,
    CourseException,
    CourseTarget,
    Employee,
    UserRole,
)
from signoff.domain.services.auth_service import hash_password
from signoff.infrastructure.db.models import UserModel

PASSWORD = "training-pass"
# Hash once; bcrypt per seeded user would dominate test time
PASSWORD_HASH = hash_password(PASSWORD)

ADMIN = Employee(
    id="16041988",
    name="System Administrator",
    part="IQC Management",
    group="ADMIN",
    company=Company.SEV,
    role=UserRole.ADMIN,
)

SEV_USERS = [
    Employee(id="10000001", name="An Nguyen", part="IQC G", group="Team A", company=Company.SEV),
    Employee(id="10000002", name="Binh Tran", part="IQC 1P", group="Team A", company=Company.SEV),
    Employee(id="10000003", name="Chi Le", part="IQC 1P", group="Team B", company=Company.SEV),
]

VENDOR_USERS = [
    Employee(
        id="200000000001", name="Dung Pham", part="N/A", group="Alpha Co", company=Company.VENDOR
    ),
    Employee(
        id="200000000002", name="Em Vo", part="N/A", group="Beta Co", company=Company.VENDOR
    ),
]

ROSTER = [*SEV_USERS, *VENDOR_USERS]


def employee(
    user_id: str,
    *,
    company: Company = Company.SEV,
    part: str = "IQC G",
    group: str = "Team A",
    role: UserRole = UserRole.USER,
) -> Employee:
    return Employee(
        id=user_id, name=f"User {user_id}", part=part, group=group, company=company, role=role
    )


def signed(user_id: str, on: date = date(2024, 1, 15)) -> Completion:
    return Completion(
        user_id=user_id,
        timestamp=datetime(on.year, on.month, on.day, 9, 30, tzinfo=UTC),
        signature="data:image/png;base64,AAAA",
    )


def excepted(user_id: str, reason: str = "Approved leave") -> CourseException:
    return CourseException(user_id=user_id, reason=reason)


def make_course(
    *,
    target: CourseTarget = CourseTarget.EXPLICIT,
    assigned: Iterable[str] = (),
    start: date = date(2024, 1, 1),
    end: date = date(2024, 1, 31),
    completions: Iterable[Completion] = (),
    exceptions: Iterable[CourseException] = (),
    is_active: bool = True,
    name: str = "Safety induction",
    course_id: str = "course-1",
) -> Course:
    return Course(
        id=course_id,
        name=name,
        start=start,
        end=end,
        target=target,
        content="Read the safety handbook.",
        assigned_user_ids=tuple(assigned),
        is_active=is_active,
        completions=tuple(completions),
        exceptions=tuple(exceptions),
    )


async def seed_users(
    session_factory: async_sessionmaker[AsyncSession], employees: Iterable[Employee]
) -> None:
    async with session_factory() as session:
        for member in employees:
            session.add(
                UserModel(
                    id=member.id,
                    name=member.name,
                    part=member.part,
                    group=member.group,
                    company=member.company,
                    role=member.role,
                    hashed_password=PASSWORD_HASH,
                )
            )
        await session.commit()


def auth_headers(user_id: str = "10000001", role: Role = Role.USER) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role)
    return {"Authorization": f"Bearer {token}"}


def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN.id, Role.ADMIN)
