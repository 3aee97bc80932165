"""Notices derived on demand from replies, menus, complaints and check-ins."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from ..checkins.repository import CheckinRepository
from ..common.datetime_utils import now_local, to_db, to_local
from ..complaints.repository import ComplaintRepository
from ..core.constants import LOW_RATING_THRESHOLD, NEW_ACCOUNT_DAYS
from ..core.enums import ComplaintStatus, MealType, Role
from ..core.exceptions import ValidationError
from ..menus.service import MenuService
from ..reviews.repository import ReviewRepository
from ..users.model import Profile
from .model import Notification
from .repository import NotificationReadRepository

logger = logging.getLogger(__name__)

REPLY_LOOKBACK_DAYS = 7
REPLY_LIMIT = 5
LOW_RATING_ALERT_COUNT = 3
PREVIEW_LENGTH = 80
MAX_MARK_READ = 50

_TAG = re.compile(r"<[^>]*>")

WELCOME_MESSAGE = (
    "You're all set! Rate your meals, scan the QR code to check in and file complaints. "
    "Your feedback shapes the hostel experience."
)


def plain_text(text: Optional[str], max_len: int = 200) -> str:
    if not text:
        return ""
    return _TAG.sub("", text).strip()[:max_len]


class NotificationService:
    def __init__(
        self,
        reads: NotificationReadRepository,
        reviews: ReviewRepository,
        complaints: ComplaintRepository,
        checkins: CheckinRepository,
        menus: MenuService,
    ):
        self._reads = reads
        self._reviews = reviews
        self._complaints = complaints
        self._checkins = checkins
        self._menus = menus

    def list_for(self, user: Profile, *, now: datetime | None = None) -> list[Notification]:
        now = to_local(now or now_local())
        notices: list[Notification] = []

        welcome = self._welcome(user, now)
        if welcome:
            notices.append(welcome)
        if user.is_student:
            notices.extend(self._student_notices(user, now))
        else:
            notices.extend(self._staff_notices(user, now))

        read = self._reads.read_ids(user.id, [n.id for n in notices])
        for notice in notices:
            notice.read = notice.id in read
        return notices

    def mark_read(self, user: Profile, notification_ids: object) -> int:
        if not isinstance(notification_ids, list) or not notification_ids:
            raise ValidationError("notificationIds array is required")
        ids = [str(i)[:120] for i in notification_ids[:MAX_MARK_READ]]
        self._reads.mark_read(user.id, ids)
        return len(ids)

    def _welcome(self, user: Profile, now: datetime) -> Optional[Notification]:
        if not user.created_at:
            return None
        created = to_local(user.created_at)
        if now - created > timedelta(days=NEW_ACCOUNT_DAYS):
            return None
        first_name = plain_text(user.name, 30).split(" ")[0] or "there"
        return Notification(
            id=f"welcome-{user.id}",
            type="welcome",
            title=f"Welcome, {first_name}!",
            message=WELCOME_MESSAGE,
            timestamp=created,
        )

    def _student_notices(self, user: Profile, now: datetime) -> list[Notification]:
        since = to_db(now - timedelta(days=REPLY_LOOKBACK_DAYS))
        notices = []

        for c in self._complaints.list_replied_since(user.id, since, limit=REPLY_LIMIT):
            resolved = c.status == ComplaintStatus.RESOLVED
            notices.append(
                Notification(
                    id=f"complaint-reply-{c.id}",
                    type="complaint_reply",
                    title="Complaint Resolved" if resolved else "Admin Replied",
                    message=plain_text(c.admin_reply, 100) or "Your complaint has been reviewed.",
                    timestamp=c.replied_at or c.created_at,
                )
            )

        for r in self._reviews.list_replied_since(user.id, since, limit=REPLY_LIMIT):
            notices.append(
                Notification(
                    id=f"review-reply-{r.id}",
                    type="review_reply",
                    title=f"Reply to your {r.meal_type.value} review",
                    message=plain_text(r.admin_reply, 100) or "An admin replied to your review.",
                    timestamp=r.admin_replied_at or r.created_at,
                )
            )

        today = now.date()
        menus = self._menus.menus_for(today, user.hostel_block)
        if menus:
            notices.append(
                Notification(
                    id=f"menu-update-{today.isoformat()}-{len(menus)}",
                    type="menu_update",
                    title="Today's Menu Updated",
                    message=f"{len(menus)} meal(s) have been updated for today.",
                    timestamp=now,
                )
            )
        return notices

    def _staff_notices(self, actor: Profile, now: datetime) -> list[Notification]:
        # Unassigned admins still get the cross-block bell
        block = actor.hostel_block if actor.role == Role.ADMIN else None
        today = now.date()
        notices = []

        pending, pending_count = self._complaints.search(
            hostel_block=block, status=ComplaintStatus.PENDING, offset=0, limit=1
        )
        if pending_count > 0:
            preview = plain_text(pending[0].complaint_text, PREVIEW_LENGTH) if pending else ""
            notices.append(
                Notification(
                    id="pending-complaints",
                    type="pending_complaints",
                    title=f"{pending_count} Pending Complaint{'s' if pending_count > 1 else ''}",
                    message=f"{preview}..." if preview else "New complaints need your attention.",
                    timestamp=pending[0].created_at if pending else now,
                )
            )

        low = [
            r for r in self._reviews.list_between(today, today, hostel_block=block)
            if r.rating <= LOW_RATING_THRESHOLD
        ]
        if len(low) >= LOW_RATING_ALERT_COUNT:
            notices.append(
                Notification(
                    id=f"low-ratings-{today.isoformat()}",
                    type="low_ratings",
                    title="Low Rating Alert",
                    message=f"{len(low)} reviews rated {LOW_RATING_THRESHOLD} stars or lower today. Please check the reviews section.",
                    timestamp=now,
                )
            )

        checkins = self._checkins.list_between(today, today, hostel_block=block)
        if checkins:
            counts = {m: 0 for m in MealType}
            for c in checkins:
                counts[c.meal_type] += 1
            parts = ", ".join(f"{m.value.capitalize()}: {n}" for m, n in counts.items() if n)
            notices.append(
                Notification(
                    id=f"meal-attendance-{today.isoformat()}",
                    type="meal_attendance",
                    title="Meal Attendance Today",
                    message=f"{len(checkins)} total check-ins ({parts})",
                    timestamp=now,
                )
            )
        return notices
