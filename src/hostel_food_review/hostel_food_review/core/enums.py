from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization and block scoping."""

    STUDENT = "student"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)


class MealType(str, Enum):
    """The four meals served per day, in serving order."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACKS = "snacks"
    DINNER = "dinner"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ComplaintCategory(str, Enum):
    HYGIENE = "hygiene"
    TASTE = "taste"
    QUANTITY = "quantity"
    TIMING = "timing"
    OTHER = "other"


class ComplaintStatus(str, Enum):
    """Complaint workflow: pending -> in_progress -> resolved."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class UserAction(str, Enum):
    """Account actions available on the admin user-management screen."""

    DEACTIVATE = "deactivate"
    REACTIVATE = "reactivate"
    PROMOTE_ADMIN = "promote_admin"
    DEMOTE_STUDENT = "demote_student"


class ExportType(str, Enum):
    REVIEWS = "reviews"
    COMPLAINTS = "complaints"
    ATTENDANCE = "attendance"
    USERS = "users"
