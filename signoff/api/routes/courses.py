"""Admin course routes.

Handlers load a snapshot, run the eligibility engine against it and format the
result; no status math happens here.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from signoff.api.deps import get_db_session, get_today, require_roles
from signoff.api.schemas.auth import UserResponse, UsersResponse
from signoff.api.schemas.courses import (
    ActiveUpdate,
    CompletionItem,
    CourseCreate,
    CourseCreatedResponse,
    CourseDetail,
    CoursesResponse,
    CourseSummaryItem,
    ExceptionItem,
    ExceptionUpsert,
    PendingGroupItem,
    PendingGroupsResponse,
    ReminderResponse,
)
from signoff.domain import Course, Employee, User
from signoff.domain.reference_data import VENDOR_GROUP_LIMIT
from signoff.domain.services import eligibility
from signoff.domain.services.courses import (
    AlreadyCompletedError,
    CourseDraft,
    CourseNotFoundError,
    CourseService,
    EmptyAudienceError,
    InvalidWindowError,
    MissingUsersError,
    NotInAudienceError,
)
from signoff.domain.services.eligibility import GroupingKey
from signoff.infrastructure.repositories.snapshots import load_roster

router = APIRouter(prefix="/courses", tags=["Courses"])
logger = structlog.get_logger()

admin_only = require_roles(["admin"])


def _summary_item(course: Course, summary: eligibility.CourseSummary) -> CourseSummaryItem:
    return CourseSummaryItem(
        id=course.id,
        name=course.name,
        start=course.start,
        end=course.end,
        target=course.target,
        is_active=course.is_active,
        status=summary.status,
        progress=summary.progress,
        audience_count=summary.audience_count,
        effective_count=summary.effective_count,
        completed_count=summary.completed_count,
        pending_count=summary.pending_count,
        exception_count=summary.exception_count,
    )


def _pending_groups(
    course: Course,
    roster: Sequence[Employee],
    grouping: GroupingKey,
    include_empty: bool,
) -> list[PendingGroupItem]:
    limit = VENDOR_GROUP_LIMIT if grouping is GroupingKey.GROUP else None
    groups = eligibility.grouped_pending_counts(
        course, roster, grouping, include_empty=include_empty, limit=limit
    )
    return [PendingGroupItem(key=g.key, label=g.label, count=g.count) for g in groups]


def _detail(course: Course, roster: Sequence[Employee], today: date) -> CourseDetail:
    summary = eligibility.summarize_course(course, roster, today)
    grouping = eligibility.default_grouping(course)
    return CourseDetail(
        **_summary_item(course, summary).model_dump(),
        content=course.content,
        assigned_user_ids=list(course.assigned_user_ids),
        pending_user_ids=sorted(eligibility.pending_users(course, roster)),
        completions=[
            CompletionItem(user_id=c.user_id, timestamp=c.timestamp) for c in course.completions
        ],
        exceptions=[ExceptionItem(user_id=e.user_id, reason=e.reason) for e in course.exceptions],
        pending_groups=_pending_groups(
            course, roster, grouping, include_empty=grouping is GroupingKey.PART
        ),
    )


def _not_found(exc: CourseNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=CoursesResponse)
async def list_courses(
    view: Literal["acting", "finished", "all"] = "acting",
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CoursesResponse:
    """List courses with derived status; ``acting`` covers Plan, Opening and Pending."""
    courses = await CourseService(session).list_snapshots()
    roster = await load_roster(session)

    summaries = {
        course.id: eligibility.summarize_course(course, roster, today) for course in courses
    }
    acting, finished = eligibility.partition_by_status(summaries.values())
    selected = {"acting": acting, "finished": finished, "all": [*acting, *finished]}[view]
    wanted = {summary.course_id for summary in selected}

    return CoursesResponse(
        as_of=today,
        courses=[
            _summary_item(course, summaries[course.id])
            for course in courses
            if course.id in wanted
        ],
    )


@router.post("", response_model=CourseCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(admin_only),
) -> CourseCreatedResponse:
    service = CourseService(session)
    draft = CourseDraft(
        name=payload.name,
        start=payload.start,
        end=payload.end,
        target=payload.target,
        content=payload.content,
        is_active=payload.is_active,
        assigned_user_ids=tuple(payload.assigned_user_ids),
    )
    try:
        created = await service.create_course(draft)
    except MissingUsersError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "missing_user_ids": exc.missing},
        ) from exc
    except (InvalidWindowError, EmptyAudienceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc

    logger.info("course_created_by_admin", course_id=created.course.id, admin_user=user.user_id)
    roster = await load_roster(session)
    return CourseCreatedResponse(
        course=_detail(created.course, roster, today), notified_count=created.notified_count
    )


@router.get("/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: str,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CourseDetail:
    try:
        course = await CourseService(session).get_snapshot(course_id)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    return _detail(course, await load_roster(session), today)


@router.get("/{course_id}/pending-groups", response_model=PendingGroupsResponse)
async def pending_groups(
    course_id: str,
    grouping: GroupingKey | None = None,
    include_empty: bool = False,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> PendingGroupsResponse:
    """Pending users per part (or per vendor company for vendor courses)."""
    try:
        course = await CourseService(session).get_snapshot(course_id)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc

    grouping = grouping or eligibility.default_grouping(course)
    roster = await load_roster(session)
    return PendingGroupsResponse(
        course_id=course_id,
        grouping=grouping.value,
        groups=_pending_groups(course, roster, grouping, include_empty),
    )


@router.patch("/{course_id}/active", response_model=CourseDetail)
async def set_active(
    course_id: str,
    payload: ActiveUpdate,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CourseDetail:
    try:
        course = await CourseService(session).set_active(course_id, payload.is_active)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    return _detail(course, await load_roster(session), today)


@router.post("/{course_id}/toggle", response_model=CourseDetail)
async def toggle_active(
    course_id: str,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CourseDetail:
    try:
        course = await CourseService(session).toggle_active(course_id)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    return _detail(course, await load_roster(session), today)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_course(
    course_id: str,
    confirm: bool = Query(False, description="Must be true; deletion discards all signatures"),
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(admin_only),
) -> None:
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deleting a course discards all signatures; pass confirm=true",
        )
    try:
        await CourseService(session).delete_course(course_id)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    logger.info("course_deleted_by_admin", course_id=course_id, admin_user=user.user_id)


@router.put("/{course_id}/exceptions/{user_id}", response_model=CourseDetail)
async def upsert_exception(
    course_id: str,
    user_id: str,
    payload: ExceptionUpsert,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CourseDetail:
    try:
        course = await CourseService(session).upsert_exception(
            course_id=course_id, user_id=user_id, reason=payload.reason
        )
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    except AlreadyCompletedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotInAudienceError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _detail(course, await load_roster(session), today)


@router.delete("/{course_id}/exceptions/{user_id}", response_model=CourseDetail)
async def remove_exception(
    course_id: str,
    user_id: str,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> CourseDetail:
    try:
        course = await CourseService(session).remove_exception(
            course_id=course_id, user_id=user_id
        )
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    return _detail(course, await load_roster(session), today)


@router.get("/{course_id}/exception-candidates", response_model=UsersResponse)
async def exception_candidates(
    course_id: str,
    q: str = "",
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(admin_only),
) -> UsersResponse:
    """Audience members who can still be excepted (not signed, not excepted)."""
    try:
        candidates = await CourseService(session).exception_candidates(course_id, q)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    return UsersResponse(
        users=[
            UserResponse(
                id=member.id,
                name=member.name,
                part=member.part,
                group=member.group,
                company=member.company.value,
                role=member.role.value,
            )
            for member in candidates
        ]
    )


@router.post("/{course_id}/reminders", response_model=ReminderResponse)
async def send_reminders(
    course_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(admin_only),
) -> ReminderResponse:
    """Notify everyone still pending on the course."""
    try:
        sent = await CourseService(session).send_reminders(course_id)
    except CourseNotFoundError as exc:
        raise _not_found(exc) from exc
    logger.info("reminders_triggered", course_id=course_id, admin_user=user.user_id)
    return ReminderResponse(course_id=course_id, sent_count=sent)
