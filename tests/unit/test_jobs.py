"""Worker job tests; jobs run their own event loop, so these tests are sync."""

from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from signoff.domain.models import CourseTarget, NotificationType
from signoff.domain.services.courses import CourseDraft, CourseService
from signoff.domain.services.notifications import NotificationService
from signoff.workers import jobs
from tests.utils import SEV_USERS


def _create(factory: async_sessionmaker[AsyncSession], draft: CourseDraft) -> str:
    async def _run() -> str:
        async with factory() as session:
            created = await CourseService(session).create_course(draft)
        return created.course.id

    return asyncio.run(_run())


def _draft(name: str, start: date, end: date, *, active: bool = True) -> CourseDraft:
    return CourseDraft(
        name=name,
        start=start,
        end=end,
        target=CourseTarget.EXPLICIT,
        is_active=active,
        assigned_user_ids=tuple(user.id for user in SEV_USERS),
    )


def _reminders(factory: async_sessionmaker[AsyncSession], user_id: str) -> int:
    async def _run() -> int:
        async with factory() as session:
            inbox = await NotificationService(session).list_for_user(user_id)
        return sum(1 for n in inbox if n.type is NotificationType.REMINDER)

    return asyncio.run(_run())


def test_overdue_sweep_reminds_pending_users_of_lapsed_courses(worker_factory) -> None:
    overdue = _create(worker_factory, _draft("Overdue", date(2024, 1, 1), date(2024, 1, 31)))
    _create(worker_factory, _draft("Current", date(2024, 2, 1), date(2024, 2, 28)))
    _create(
        worker_factory, _draft("Switched off", date(2024, 1, 1), date(2024, 1, 31), active=False)
    )

    async def _sign() -> None:
        async with worker_factory() as session:
            await CourseService(session).append_completion(
                course_id=overdue,
                user=SEV_USERS[0],
                signature="data:image/png;base64,AAAA",
                timestamp=datetime(2024, 1, 10, tzinfo=UTC),
            )

    asyncio.run(_sign())

    result = jobs.send_overdue_reminders_job("2024-02-10")

    assert result["status"] == "completed"
    assert result["as_of"] == "2024-02-10"
    assert result["sent"] == {overdue: 2}
    assert _reminders(worker_factory, SEV_USERS[0].id) == 0
    assert _reminders(worker_factory, SEV_USERS[1].id) == 1


def test_course_reminder_job(worker_factory) -> None:
    course_id = _create(worker_factory, _draft("Current", date(2024, 2, 1), date(2024, 2, 28)))

    result = jobs.send_course_reminders_job(course_id)

    assert result == {"course_id": course_id, "status": "completed", "sent_count": len(SEV_USERS)}


def test_course_reminder_job_for_missing_course(worker_factory) -> None:
    result = jobs.send_course_reminders_job("missing")

    assert result["status"] == "failed"
