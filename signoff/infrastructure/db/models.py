from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from signoff.domain.models import Company, CourseTarget, NotificationType, UserRole

from .base import Base


def _utc_now() -> datetime:
    return datetime.now(UTC)


class UserModel(Base):
    """Roster member with login credentials."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(12), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    part: Mapped[str] = mapped_column(String(128), nullable=False, default="N/A")
    group: Mapped[str] = mapped_column("group_name", String(128), nullable=False, default="N/A")
    company: Mapped[Company] = mapped_column(
        Enum(Company, name="company", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        index=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [x.value for x in e]),
        default=UserRole.USER,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )

    notifications: Mapped[list[NotificationModel]] = relationship(
        back_populates="user",
        cascade="all,delete-orphan",
        order_by="NotificationModel.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, name={self.name}, role={self.role.value})>"


class CourseModel(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start: Mapped[date] = mapped_column("start_date", Date, nullable=False)
    end: Mapped[date] = mapped_column("end_date", Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target: Mapped[CourseTarget] = mapped_column(
        Enum(CourseTarget, name="course_target", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )

    # Audience captured at creation time
    assignments: Mapped[list[CourseAssignment]] = relationship(
        back_populates="course", cascade="all,delete-orphan", order_by="CourseAssignment.id"
    )
    completions: Mapped[list[CompletionModel]] = relationship(
        back_populates="course", cascade="all,delete-orphan", order_by="CompletionModel.signed_at"
    )
    exceptions: Mapped[list[CourseExceptionModel]] = relationship(
        back_populates="course", cascade="all,delete-orphan", order_by="CourseExceptionModel.id"
    )


class CourseAssignment(Base):
    __tablename__ = "course_assignments"
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_assignment_per_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Not a foreign key: history survives roster deletions
    user_id: Mapped[str] = mapped_column(String(12), nullable=False)

    course: Mapped[CourseModel] = relationship(back_populates="assignments")


class CompletionModel(Base):
    """A signature event; at most one per user per course."""

    __tablename__ = "course_completions"
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_completion_per_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(12), nullable=False, index=True)
    signature: Mapped[str] = mapped_column(Text, nullable=False)
    signed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )

    course: Mapped[CourseModel] = relationship(back_populates="completions")


class CourseExceptionModel(Base):
    __tablename__ = "course_exceptions"
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_exception_per_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(12), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    course: Mapped[CourseModel] = relationship(back_populates="exceptions")


class NotificationModel(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            name="notification_type",
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, nullable=False, index=True
    )

    user: Mapped[UserModel] = relationship(back_populates="notifications")


__all__ = [
    "UserModel",
    "CourseModel",
    "CourseAssignment",
    "CompletionModel",
    "CourseExceptionModel",
    "NotificationModel",
]
