"""
Course store: creation, signing, exceptions and reminders.

Every read returns an immutable ``Course`` snapshot; status and progress are
always derived by the eligibility engine from that snapshot, never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.core.clock import reference_zone
from signoff.core.config import get_settings
from signoff.domain.models import (
    Completion,
    Course,
    CourseTarget,
    Employee,
    NotificationType,
)
from signoff.domain.services import eligibility
from signoff.domain.services.notifications import NotificationService
from signoff.infrastructure.db.models import (
    CompletionModel,
    CourseAssignment,
    CourseExceptionModel,
    CourseModel,
    UserModel,
)
from signoff.infrastructure.repositories.snapshots import (
    course_from_model,
    employee_from_model,
    ensure_aware,
    load_course_model,
    load_courses,
    load_roster,
)

logger = structlog.get_logger()


class CourseError(Exception):
    """Base exception for course operations."""


class CourseNotFoundError(CourseError):
    """Raised when a course id does not exist."""


class MissingUsersError(CourseError):
    """Raised when an explicit audience names ids absent from the roster."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        preview = ", ".join(missing[:3])
        suffix = f" and {len(missing) - 3} more" if len(missing) > 3 else ""
        super().__init__(f"Users must be registered first: {preview}{suffix}")


class InvalidWindowError(CourseError):
    """Raised when a course would end before it starts."""


class EmptyAudienceError(CourseError):
    """Raised when an explicit-list course names nobody."""


class CourseInactiveError(CourseError):
    """Raised when signing a course that is switched off."""


class NotInAudienceError(CourseError):
    """Raised when a user is not part of a course's effective audience."""


class AlreadyCompletedError(CourseError):
    """Raised when excepting a user who has already signed."""


@dataclass(slots=True)
class CourseDraft:
    name: str
    start: date
    end: date
    target: CourseTarget
    content: str = ""
    is_active: bool = True
    assigned_user_ids: tuple[str, ...] = ()


@dataclass(slots=True)
class CourseCreated:
    course: Course
    notified_count: int


class CourseService:
    """Mutation and snapshot access for courses."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.notifications = NotificationService(session)

    async def list_snapshots(self) -> list[Course]:
        return await load_courses(self.session)

    async def get_snapshot(self, course_id: str) -> Course:
        return course_from_model(await self._get_model(course_id))

    async def create_course(self, draft: CourseDraft) -> CourseCreated:
        """Create a course, capturing its audience from the current roster."""
        if draft.start > draft.end:
            raise InvalidWindowError("Course end date must not precede its start date")

        roster = await load_roster(self.session)

        if draft.target.is_explicit:
            # dict.fromkeys keeps the import order while dropping repeats
            requested = list(dict.fromkeys(draft.assigned_user_ids))
            if not requested:
                raise EmptyAudienceError("An explicit audience needs at least one user")
            known = {member.id for member in roster}
            missing = [user_id for user_id in requested if user_id not in known]
            if missing:
                raise MissingUsersError(missing)
            assigned = requested
        else:
            draft_course = Course(
                id="", name=draft.name, start=draft.start, end=draft.end, target=draft.target
            )
            assigned = sorted(eligibility.resolve_audience(draft_course, roster))

        course = CourseModel(
            name=draft.name,
            start=draft.start,
            end=draft.end,
            content=draft.content,
            target=draft.target,
            is_active=draft.is_active,
        )
        course.assignments = [CourseAssignment(user_id=user_id) for user_id in assigned]
        self.session.add(course)
        await self.session.flush()

        settings = get_settings()
        notified = await self.notifications.notify_many(
            assigned,
            settings.new_course_message_template.format(course_name=draft.name),
            NotificationType.NEW_COURSE,
        )
        await self.session.commit()

        await logger.ainfo(
            "course_created",
            course_id=course.id,
            course_name=course.name,
            target=draft.target.value,
            assigned_count=len(assigned),
            notified_count=notified,
        )
        return CourseCreated(course=await self.get_snapshot(course.id), notified_count=notified)

    async def append_completion(
        self,
        *,
        course_id: str,
        user: Employee,
        signature: str,
        timestamp: datetime,
    ) -> Completion:
        """Record a signature; signing twice returns the first completion."""
        model = await self._get_model(course_id)
        snapshot = course_from_model(model)

        existing = next((c for c in snapshot.completions if c.user_id == user.id), None)
        if existing is not None:
            await logger.ainfo(
                "completion_duplicate_ignored", course_id=course_id, user_id=user.id
            )
            return existing

        if not snapshot.is_active:
            raise CourseInactiveError(f"Course {course_id} is not open for signing")
        if eligibility.as_date(timestamp, reference_zone()) < snapshot.start:
            raise CourseInactiveError(f"Course {course_id} has not started yet")
        if user.id not in eligibility.pending_users(snapshot, (user,)):
            raise NotInAudienceError(f"User {user.id} is not expected to sign course {course_id}")

        completion = CompletionModel(user_id=user.id, signature=signature, signed_at=timestamp)
        model.completions.append(completion)
        try:
            await self.session.commit()
        except IntegrityError:
            # A concurrent request signed first
            await self.session.rollback()
            await logger.ainfo("completion_race_resolved", course_id=course_id, user_id=user.id)
            refreshed = await self.get_snapshot(course_id)
            return next(c for c in refreshed.completions if c.user_id == user.id)

        await logger.ainfo(
            "completion_recorded",
            course_id=course_id,
            user_id=user.id,
            signature=signature,
        )
        return Completion(
            user_id=user.id, timestamp=ensure_aware(timestamp), signature=signature
        )

    async def upsert_exception(self, *, course_id: str, user_id: str, reason: str) -> Course:
        """Insert an exception or replace its reason."""
        model = await self._get_model(course_id)
        snapshot = course_from_model(model)

        if user_id in eligibility.completed_ids(snapshot):
            raise AlreadyCompletedError(f"User {user_id} has already signed course {course_id}")

        roster = await load_roster(self.session)
        if user_id not in eligibility.resolve_audience(snapshot, roster):
            raise NotInAudienceError(f"User {user_id} is not in the audience of {course_id}")

        current = next((exc for exc in model.exceptions if exc.user_id == user_id), None)
        if current is None:
            model.exceptions.append(CourseExceptionModel(user_id=user_id, reason=reason))
        else:
            current.reason = reason
        await self.session.commit()

        await logger.ainfo(
            "exception_upserted",
            course_id=course_id,
            user_id=user_id,
            replaced=current is not None,
        )
        return await self.get_snapshot(course_id)

    async def remove_exception(self, *, course_id: str, user_id: str) -> Course:
        model = await self._get_model(course_id)
        current = next((exc for exc in model.exceptions if exc.user_id == user_id), None)
        if current is not None:
            model.exceptions.remove(current)
            await self.session.commit()
            await logger.ainfo("exception_removed", course_id=course_id, user_id=user_id)
        return await self.get_snapshot(course_id)

    async def exception_candidates(self, course_id: str, query: str = "") -> list[Employee]:
        """Audience members who have neither signed nor been excepted."""
        snapshot = await self.get_snapshot(course_id)
        roster = await load_roster(self.session)
        open_ids = eligibility.resolve_audience(snapshot, roster) - {
            *eligibility.completed_ids(snapshot),
            *(exc.user_id for exc in snapshot.exceptions),
        }
        needle = query.strip().casefold()
        return [
            member
            for member in roster
            if member.id in open_ids
            and (not needle or needle in member.name.casefold() or needle in member.id)
        ]

    async def set_active(self, course_id: str, is_active: bool) -> Course:
        model = await self._get_model(course_id)
        model.is_active = is_active
        await self.session.commit()
        await logger.ainfo("course_active_set", course_id=course_id, is_active=is_active)
        return await self.get_snapshot(course_id)

    async def toggle_active(self, course_id: str) -> Course:
        model = await self._get_model(course_id)
        return await self.set_active(course_id, not model.is_active)

    async def delete_course(self, course_id: str) -> None:
        """Irreversibly delete a course with its completions and exceptions."""
        model = await self._get_model(course_id)
        completion_count = len(model.completions)
        await self.session.delete(model)
        await self.session.commit()
        await logger.awarning(
            "course_deleted",
            course_id=course_id,
            discarded_completions=completion_count,
        )

    async def send_reminders(self, course_id: str) -> int:
        """Notify every currently pending user of the course."""
        snapshot = await self.get_snapshot(course_id)
        roster = await load_roster(self.session)
        pending = eligibility.pending_users(snapshot, roster)

        message = get_settings().reminder_message_template.format(
            course_name=snapshot.name, end=snapshot.end.isoformat()
        )
        sent = await self.notifications.notify_many(pending, message, NotificationType.REMINDER)
        await self.session.commit()

        await logger.ainfo(
            "reminders_sent", course_id=course_id, pending_count=len(pending), sent_count=sent
        )
        return sent

    async def get_employee(self, user_id: str) -> Employee | None:
        user = await self.session.scalar(select(UserModel).where(UserModel.id == user_id))
        return employee_from_model(user) if user is not None else None

    async def _get_model(self, course_id: str) -> CourseModel:
        model = await load_course_model(self.session, course_id)
        if model is None:
            raise CourseNotFoundError(f"Course {course_id} not found")
        return model
