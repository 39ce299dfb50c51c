"""Load immutable domain snapshots for the eligibility engine."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from signoff.domain.models import (
    Completion,
    Course,
    CourseException,
    Employee,
    Notification,
)
from signoff.infrastructure.db.models import (
    CourseModel,
    NotificationModel,
    UserModel,
)

if TYPE_CHECKING:
    from sqlalchemy import Select


def ensure_aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def employee_from_model(user: UserModel) -> Employee:
    return Employee(
        id=user.id,
        name=user.name,
        part=user.part,
        group=user.group,
        company=user.company,
        role=user.role,
    )


def course_from_model(course: CourseModel) -> Course:
    return Course(
        id=course.id,
        name=course.name,
        start=course.start,
        end=course.end,
        target=course.target,
        content=course.content,
        assigned_user_ids=tuple(assignment.user_id for assignment in course.assignments),
        is_active=course.is_active,
        completions=tuple(
            Completion(
                user_id=completion.user_id,
                timestamp=ensure_aware(completion.signed_at),
                signature=completion.signature,
            )
            for completion in course.completions
        ),
        exceptions=tuple(
            CourseException(user_id=exc.user_id, reason=exc.reason) for exc in course.exceptions
        ),
        created_at=ensure_aware(course.created_at) if course.created_at else None,
    )


def notification_from_model(notification: NotificationModel) -> Notification:
    return Notification(
        id=notification.id,
        user_id=notification.user_id,
        message=notification.message,
        type=notification.type,
        timestamp=ensure_aware(notification.created_at),
        is_read=notification.is_read,
    )


def course_query() -> Select[tuple[CourseModel]]:
    # populate_existing: callers re-read after their own writes in the same session
    return (
        select(CourseModel)
        .options(
            selectinload(CourseModel.assignments),
            selectinload(CourseModel.completions),
            selectinload(CourseModel.exceptions),
        )
        .execution_options(populate_existing=True)
    )


async def load_roster(session: AsyncSession) -> list[Employee]:
    stmt: Select[tuple[UserModel]] = select(UserModel).order_by(UserModel.id)
    users: Sequence[UserModel] = (await session.execute(stmt)).scalars().all()
    return [employee_from_model(user) for user in users]


async def load_course_model(session: AsyncSession, course_id: str) -> CourseModel | None:
    stmt = course_query().where(CourseModel.id == course_id)
    return await session.scalar(stmt)


async def load_courses(session: AsyncSession) -> list[Course]:
    stmt = course_query().order_by(CourseModel.created_at, CourseModel.name)
    courses = (await session.execute(stmt)).scalars().all()
    return [course_from_model(course) for course in courses]
