"""Domain services."""

from signoff.domain.services.auth_service import AuthService
from signoff.domain.services.courses import CourseDraft, CourseService
from signoff.domain.services.notifications import NotificationService
from signoff.domain.services.roster import ImportResult, RosterService

__all__ = [
    "AuthService",
    "CourseDraft",
    "CourseService",
    "ImportResult",
    "NotificationService",
    "RosterService",
]
