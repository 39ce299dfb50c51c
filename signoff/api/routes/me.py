"""Employee-facing routes: courses to sign and the notification inbox."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.api.deps import get_db_session, get_local_today, require_roles
from signoff.api.schemas.me import (
    MarkReadResponse,
    MyCourseItem,
    MyCoursesResponse,
    NotificationItem,
    NotificationsResponse,
    SignRequest,
    SignResponse,
)
from signoff.core.clock import utc_now
from signoff.domain import Employee, User
from signoff.domain.services import eligibility
from signoff.domain.services.courses import (
    CourseInactiveError,
    CourseNotFoundError,
    CourseService,
    NotInAudienceError,
)
from signoff.domain.services.notifications import NotificationService

router = APIRouter(prefix="/me", tags=["Employee"])

employee_only = require_roles(["user"])


async def _current_employee(service: CourseService, user: User) -> Employee:
    employee = await service.get_employee(user.user_id)
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user.user_id} is no longer on the roster",
        )
    return employee


@router.get("/courses", response_model=MyCoursesResponse)
async def my_courses(
    today: date = Depends(get_local_today),
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(employee_only),
) -> MyCoursesResponse:
    """Courses the employee must still sign, overdue ones included."""
    service = CourseService(session)
    employee = await _current_employee(service, user)
    courses = eligibility.actionable_courses(await service.list_snapshots(), employee, today)
    return MyCoursesResponse(
        as_of=today,
        courses=[
            MyCourseItem(
                id=course.id,
                name=course.name,
                start=course.start,
                end=course.end,
                content=course.content,
                overdue=today > course.end,
            )
            for course in courses
        ],
    )


@router.post("/courses/{course_id}/sign", response_model=SignResponse)
async def sign_course(
    course_id: str,
    payload: SignRequest,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(employee_only),
) -> SignResponse:
    """Record the employee's signature; repeating it returns the first record."""
    service = CourseService(session)
    employee = await _current_employee(service, user)
    try:
        completion = await service.append_completion(
            course_id=course_id,
            user=employee,
            signature=payload.signature,
            timestamp=utc_now(),
        )
    except CourseNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CourseInactiveError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotInAudienceError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return SignResponse(
        course_id=course_id, user_id=completion.user_id, signed_at=completion.timestamp
    )


@router.get("/notifications", response_model=NotificationsResponse)
async def my_notifications(
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["user", "admin"])),
) -> NotificationsResponse:
    service = NotificationService(session)
    notifications = await service.list_for_user(user.user_id)
    return NotificationsResponse(
        unread_count=await service.unread_count(user.user_id),
        notifications=[
            NotificationItem(
                id=n.id,
                message=n.message,
                type=n.type,
                timestamp=n.timestamp,
                is_read=n.is_read,
            )
            for n in notifications
        ],
    )


@router.post("/notifications/read", response_model=MarkReadResponse)
async def mark_notifications_read(
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["user", "admin"])),
) -> MarkReadResponse:
    updated = await NotificationService(session).mark_all_read(user.user_id)
    return MarkReadResponse(updated=updated)
