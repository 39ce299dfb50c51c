from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Company(str, enum.Enum):
    """Employment category of a roster member."""

    SEV = "sev"
    VENDOR = "vendor"

    @property
    def id_length(self) -> int:
        return 8 if self is Company.SEV else 12

    @classmethod
    def from_user_id(cls, user_id: str) -> Company:
        return cls.SEV if len(user_id) == cls.SEV.id_length else cls.VENDOR


class CourseTarget(str, enum.Enum):
    """Audience selector: a whole company category or an explicit list."""

    SEV = "sev"
    VENDOR = "vendor"
    EXPLICIT = "target"

    @property
    def is_explicit(self) -> bool:
        return self is CourseTarget.EXPLICIT


class CourseStatus(str, enum.Enum):
    PLAN = "Plan"
    OPENING = "Opening"
    PENDING = "Pending"
    FINISHED = "Finished"

    @classmethod
    def acting_statuses(cls) -> tuple[CourseStatus, ...]:
        return (cls.PLAN, cls.OPENING, cls.PENDING)


class NotificationType(str, enum.Enum):
    NEW_COURSE = "new_course"
    REMINDER = "reminder"


@dataclass(slots=True)
class User:
    """Authenticated actor, as carried by a bearer token."""

    user_id: str
    name: str = ""
    roles: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Employee:
    """Roster member snapshot."""

    id: str
    name: str
    part: str
    group: str
    company: Company
    role: UserRole = UserRole.USER


@dataclass(frozen=True, slots=True)
class Completion:
    user_id: str
    timestamp: datetime
    signature: str


@dataclass(frozen=True, slots=True)
class CourseException:
    user_id: str
    reason: str


@dataclass(frozen=True, slots=True)
class Course:
    """Immutable course snapshot handed to the eligibility engine."""

    id: str
    name: str
    start: date
    end: date
    target: CourseTarget
    content: str = ""
    assigned_user_ids: tuple[str, ...] = ()
    is_active: bool = True
    completions: tuple[Completion, ...] = ()
    exceptions: tuple[CourseException, ...] = ()
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    user_id: str
    message: str
    type: NotificationType
    timestamp: datetime
    is_read: bool = False
