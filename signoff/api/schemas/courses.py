from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from signoff.domain.models import CourseStatus, CourseTarget


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start: date
    end: date
    content: str = ""
    target: CourseTarget = CourseTarget.SEV
    is_active: bool = True
    assigned_user_ids: list[str] = Field(
        default_factory=list, description="Required when target is 'target'"
    )

    @model_validator(mode="after")
    def check_window_and_audience(self) -> CourseCreate:
        if self.start > self.end:
            raise ValueError("end must not be before start")
        if self.target is CourseTarget.EXPLICIT and not self.assigned_user_ids:
            raise ValueError("assigned_user_ids is required for an explicit audience")
        return self


class CompletionItem(BaseModel):
    user_id: str
    timestamp: datetime


class ExceptionItem(BaseModel):
    user_id: str
    reason: str


class PendingGroupItem(BaseModel):
    key: str
    label: str
    count: int


class CourseSummaryItem(BaseModel):
    id: str
    name: str
    start: date
    end: date
    target: CourseTarget
    is_active: bool
    status: CourseStatus
    progress: int
    audience_count: int
    effective_count: int
    completed_count: int
    pending_count: int
    exception_count: int


class CoursesResponse(BaseModel):
    as_of: date
    courses: list[CourseSummaryItem]


class CourseDetail(CourseSummaryItem):
    content: str
    assigned_user_ids: list[str]
    pending_user_ids: list[str]
    completions: list[CompletionItem]
    exceptions: list[ExceptionItem]
    pending_groups: list[PendingGroupItem]


class CourseCreatedResponse(BaseModel):
    course: CourseDetail
    notified_count: int


class ActiveUpdate(BaseModel):
    is_active: bool


class ExceptionUpsert(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class PendingGroupsResponse(BaseModel):
    course_id: str
    grouping: str
    groups: list[PendingGroupItem]


class ReminderResponse(BaseModel):
    course_id: str
    sent_count: int
