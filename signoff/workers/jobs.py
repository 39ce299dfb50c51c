"""
Worker jobs for reminder dispatch.

The overdue sweep reminds everyone still pending on active courses whose
window has lapsed; it is meant to be enqueued once a day.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

import structlog

from signoff.core.clock import local_today
from signoff.domain.models import CourseStatus
from signoff.domain.services import eligibility
from signoff.domain.services.courses import CourseNotFoundError, CourseService
from signoff.infrastructure.db.session import get_session_factory
from signoff.infrastructure.repositories.snapshots import load_roster

logger = structlog.get_logger()


def send_course_reminders_job(course_id: str) -> dict[str, Any]:
    """Entry point for reminding one course's pending users."""
    return asyncio.run(_send_course_reminders_async(course_id))


def send_overdue_reminders_job(as_of: str | None = None) -> dict[str, Any]:
    """Entry point for the daily overdue sweep.

    Args:
        as_of: ISO date to evaluate against; defaults to today in the
            configured timezone.
    """
    today = date.fromisoformat(as_of) if as_of else local_today()
    return asyncio.run(_send_overdue_reminders_async(today))


async def _send_course_reminders_async(course_id: str) -> dict[str, Any]:
    async with get_session_factory()() as session:
        try:
            sent = await CourseService(session).send_reminders(course_id)
        except CourseNotFoundError as e:
            logger.warning("reminder_job_course_missing", course_id=course_id, error=str(e))
            return {"course_id": course_id, "status": "failed", "error": str(e)}
    return {"course_id": course_id, "status": "completed", "sent_count": sent}


async def _send_overdue_reminders_async(today: date) -> dict[str, Any]:
    async with get_session_factory()() as session:
        service = CourseService(session)
        courses = await service.list_snapshots()
        roster = await load_roster(session)

        overdue = [
            course
            for course in courses
            if course.is_active
            and eligibility.course_status(course, roster, today) is CourseStatus.PENDING
        ]

        sent: dict[str, int] = {}
        for course in overdue:
            sent[course.id] = await service.send_reminders(course.id)

    logger.info(
        "overdue_sweep_completed",
        as_of=today.isoformat(),
        course_count=len(overdue),
        sent_total=sum(sent.values()),
    )
    return {"as_of": today.isoformat(), "status": "completed", "sent": sent}
