"""
Course eligibility, status and progress engine.

Pure functions over immutable snapshots: a ``Course``, the roster of
``Employee`` records, and an explicit ``today``. Nothing here reads the clock
or touches storage, so callers recompute from a fresh snapshot whenever the
underlying data changes.

Tie-break for corrupted input: a user holding both a completion and an
exception is treated as completed. Duplicate ids are collapsed.
"""

from __future__ import annotations

import enum
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from signoff.domain.models import Course, CourseStatus, Employee, UserRole
from signoff.domain.reference_data import PART_LABELS, PART_ORDER

UNKNOWN_GROUP = "Unknown"


class GroupingKey(str, enum.Enum):
    PART = "part"
    GROUP = "group"


@dataclass(frozen=True, slots=True)
class PendingGroup:
    key: str
    label: str
    count: int


@dataclass(frozen=True, slots=True)
class CourseSummary:
    course_id: str
    name: str
    status: CourseStatus
    progress: int
    audience_count: int
    effective_count: int
    completed_count: int
    pending_count: int
    exception_count: int


def as_date(value: date | datetime | str, tz: tzinfo | None = None) -> date:
    """Normalize a date-like value to a calendar date.

    Aware datetimes are converted to ``tz`` before the time of day is dropped.
    """
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def completed_ids(course: Course) -> frozenset[str]:
    return frozenset(completion.user_id for completion in course.completions)


def excepted_ids(course: Course) -> frozenset[str]:
    """Exception holders, minus anyone who has already signed."""
    return frozenset(exc.user_id for exc in course.exceptions) - completed_ids(course)


def resolve_audience(course: Course, roster: Iterable[Employee]) -> frozenset[str]:
    if course.target.is_explicit:
        return frozenset(course.assigned_user_ids)
    return frozenset(
        member.id
        for member in roster
        if member.company.value == course.target.value and member.role is UserRole.USER
    )


def effective_audience(course: Course, roster: Iterable[Employee]) -> frozenset[str]:
    return resolve_audience(course, roster) - excepted_ids(course)


def pending_users(course: Course, roster: Iterable[Employee]) -> frozenset[str]:
    return effective_audience(course, roster) - completed_ids(course)


def progress_percent(course: Course, roster: Iterable[Employee]) -> int:
    effective = effective_audience(course, roster)
    if not effective:
        return 0

    signed = len(effective & completed_ids(course))
    total = len(effective)
    # Round half up, as the percentages have always been displayed
    percent = (200 * signed + total) // (2 * total)
    # 100 is reserved for a fully signed audience
    if percent == 100 and signed < total:
        return 99
    return percent


def course_status(
    course: Course,
    roster: Iterable[Employee],
    today: date | datetime | str,
    *,
    tz: tzinfo | None = None,
) -> CourseStatus:
    """Classify a course; Finished is checked before the date window.

    An aware ``today`` is read as a calendar day in ``tz``.
    """
    effective = effective_audience(course, roster)
    if effective and effective <= completed_ids(course):
        return CourseStatus.FINISHED

    today = as_date(today, tz)
    if today < as_date(course.start):
        return CourseStatus.PLAN
    if today > as_date(course.end):
        return CourseStatus.PENDING
    return CourseStatus.OPENING


def is_eligible_today(
    course: Course,
    user: Employee,
    today: date | datetime | str,
    *,
    tz: tzinfo | None = None,
) -> bool:
    """Whether ``user`` must be shown ``course`` for signature on ``today``.

    Overdue courses stay actionable until signed or excepted.
    """
    if not course.is_active:
        return False
    if as_date(today, tz) < as_date(course.start):
        return False
    # Membership only depends on the user's own record, so a one-man roster suffices
    return user.id in pending_users(course, (user,))


def grouped_pending_counts(
    course: Course,
    roster: Sequence[Employee],
    grouping_key: GroupingKey | str,
    *,
    include_empty: bool = False,
    limit: int | None = None,
) -> list[PendingGroup]:
    """Count pending users per part or group, largest first.

    Ties fall back to the fixed display order of known values so repeated
    renders are stable. Pending ids missing from the roster are counted under
    ``UNKNOWN_GROUP``.
    """
    grouping_key = GroupingKey(grouping_key)
    by_id = {member.id: member for member in roster}
    pending = pending_users(course, roster)

    counts: Counter[str] = Counter(
        getattr(by_id[user_id], grouping_key.value) if user_id in by_id else UNKNOWN_GROUP
        for user_id in pending
    )

    if include_empty:
        for value in _known_values(course, roster, grouping_key):
            counts.setdefault(value, 0)

    order = _display_order(counts, grouping_key)
    groups = [
        PendingGroup(key=value, label=_label(value, grouping_key), count=counts[value])
        for value in sorted(counts, key=lambda value: (-counts[value], order[value]))
    ]
    if limit is not None:
        groups = groups[:limit]
    return groups


def default_grouping(course: Course) -> GroupingKey:
    """Vendor courses break down by company group, everything else by part."""
    return GroupingKey.GROUP if course.target.value == "vendor" else GroupingKey.PART


def summarize_course(
    course: Course,
    roster: Sequence[Employee],
    today: date | datetime | str,
    *,
    tz: tzinfo | None = None,
) -> CourseSummary:
    audience = resolve_audience(course, roster)
    effective = audience - excepted_ids(course)
    completed = effective & completed_ids(course)
    return CourseSummary(
        course_id=course.id,
        name=course.name,
        status=course_status(course, roster, today, tz=tz),
        progress=progress_percent(course, roster),
        audience_count=len(audience),
        effective_count=len(effective),
        completed_count=len(completed),
        pending_count=len(effective - completed),
        exception_count=len(audience & excepted_ids(course)),
    )


def actionable_courses(
    courses: Iterable[Course],
    user: Employee,
    today: date | datetime | str,
    *,
    tz: tzinfo | None = None,
) -> list[Course]:
    """Courses the user must still sign, ordered by end date."""
    eligible = [
        course for course in courses if is_eligible_today(course, user, today, tz=tz)
    ]
    return sorted(eligible, key=lambda course: (as_date(course.end), course.name))


def partition_by_status(
    summaries: Iterable[CourseSummary],
) -> tuple[list[CourseSummary], list[CourseSummary]]:
    """Split summaries into (acting, finished) lists for the admin views."""
    acting: list[CourseSummary] = []
    finished: list[CourseSummary] = []
    for summary in summaries:
        if summary.status is CourseStatus.FINISHED:
            finished.append(summary)
        else:
            acting.append(summary)
    return acting, finished


def _known_values(
    course: Course, roster: Sequence[Employee], grouping_key: GroupingKey
) -> set[str]:
    effective = effective_audience(course, roster)
    values = {
        getattr(member, grouping_key.value) for member in roster if member.id in effective
    }
    if grouping_key is GroupingKey.PART:
        values.update(PART_ORDER)
    return values


def _display_order(values: Iterable[str], grouping_key: GroupingKey) -> dict[str, tuple]:
    fixed = PART_ORDER if grouping_key is GroupingKey.PART else ()
    return {
        value: (fixed.index(value), "") if value in fixed else (len(fixed), value.casefold())
        for value in values
    }


def _label(value: str, grouping_key: GroupingKey) -> str:
    if grouping_key is GroupingKey.PART:
        return PART_LABELS.get(value, value)
    return value
