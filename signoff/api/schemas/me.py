from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from signoff.domain.models import NotificationType


class MyCourseItem(BaseModel):
    id: str
    name: str
    start: date
    end: date
    content: str
    overdue: bool


class MyCoursesResponse(BaseModel):
    as_of: date
    courses: list[MyCourseItem]


class SignRequest(BaseModel):
    signature: str = Field(..., min_length=1, description="Captured signature image (data URL)")


class SignResponse(BaseModel):
    course_id: str
    user_id: str
    signed_at: datetime


class NotificationItem(BaseModel):
    id: str
    message: str
    type: NotificationType
    timestamp: datetime
    is_read: bool


class NotificationsResponse(BaseModel):
    unread_count: int
    notifications: list[NotificationItem]


class MarkReadResponse(BaseModel):
    updated: int
