from signoff.domain.models import (
    Company,
    Completion,
    Course,
    CourseException,
    CourseStatus,
    CourseTarget,
    Employee,
    Notification,
    NotificationType,
    User,
    UserRole,
)

__all__ = [
    "Company",
    "Completion",
    "Course",
    "CourseException",
    "CourseStatus",
    "CourseTarget",
    "Employee",
    "Notification",
    "NotificationType",
    "User",
    "UserRole",
]
