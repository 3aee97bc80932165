from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local, to_db, to_local
from ..common.stats import percentage
from ..common.validators import clamp_int, optional_enum
from ..core.constants import DEFAULT_HISTORY_DAYS, MAX_HISTORY_DAYS
from ..core.enums import MealType
from ..core.exceptions import AuthorizationError, DuplicateEntryError, ValidationError
from ..settings.service import SiteSettingsService, meal_windows_display
from ..users.model import Profile
from ..users.repository import UserRepository
from ..users.scope import scoped_block
from . import qr
from .repository import CheckinRepository

logger = logging.getLogger(__name__)


def _empty_counts() -> dict[str, int]:
    return {meal.value: 0 for meal in MealType}


class CheckinService:
    """Use case: QR meal attendance for students and the staff views over it."""

    def __init__(
        self,
        checkins: CheckinRepository,
        users: UserRepository,
        settings: SiteSettingsService,
        *,
        app_url: str,
    ):
        self._checkins = checkins
        self._users = users
        self._settings = settings
        self._app_url = app_url

    @property
    def checkin_url(self) -> str:
        return qr.checkin_url(self._app_url)

    def qr_png(self) -> bytes:
        return qr.render_png(self.checkin_url)

    def check_in(self, user: Profile, *, now: datetime | None = None) -> dict:
        if not user.is_student:
            raise AuthorizationError("Only students can check in for meals")

        now = to_local(now or now_local())
        timings = self._settings.get_timings()
        meal = self._settings.current_meal(now)
        if not meal:
            raise ValidationError(
                "No meal is currently being served",
                extra={
                    "message": "Check-in is only available during meal hours.",
                    "mealWindows": meal_windows_display(timings),
                },
            )

        today = now.date()
        result = {
            "success": True,
            "mealType": meal.meal_type.value,
            "mealLabel": meal.label,
            "date": today.isoformat(),
            "userName": user.name,
        }
        try:
            checkin_id = self._checkins.create(
                user_id=user.id,
                meal_type=meal.meal_type,
                date=today,
                hostel_block=user.hostel_block,
                checked_in_at=to_db(now),
            )
        except DuplicateEntryError:
            existing = self._checkins.get(user_id=user.id, meal_type=meal.meal_type, date=today)
            result.update(
                alreadyCheckedIn=True,
                checkinId=existing.id if existing else None,
                message=f"You've already checked in for {meal.label}.",
            )
            return result

        logger.info("Check-in %s %s %s", user.register_id, meal.meal_type.value, today)
        result.update(alreadyCheckedIn=False, checkinId=checkin_id, message=f"Checked in for {meal.label}!")
        return result

    def check_in_from_image(self, user: Profile, data: bytes, *, now: datetime | None = None) -> dict:
        if not user.is_student:
            raise AuthorizationError("Only students can check in for meals")
        if not data:
            raise ValidationError("Image is required")

        scanned = qr.decode_image(data)
        if not scanned:
            raise ValidationError("No QR code found in the image")
        qr.validate_checkin_url(scanned, self._app_url)
        return self.check_in(user, now=now)

    def today(self, user: Profile, *, day: Optional[date] = None, now: datetime | None = None) -> dict:
        now = to_local(now or now_local())
        day = day or now.date()
        rows = self._checkins.list_between(day, day, user_id=user.id)
        meal = self._settings.current_meal(now)
        return {
            "checkins": [c.to_dict() for c in rows],
            "date": day.isoformat(),
            "currentMeal": meal.meal_type.value if meal else None,
            "currentMealLabel": meal.label if meal else None,
        }

    def history(self, user: Profile, *, days: object = None, now: datetime | None = None) -> dict:
        days = clamp_int(days, default=DEFAULT_HISTORY_DAYS, minimum=1, maximum=MAX_HISTORY_DAYS)
        today = to_local(now or now_local()).date()
        start = today - timedelta(days=days - 1)

        rows = self._checkins.list_between(start, today, user_id=user.id)
        by_date: dict[date, list[str]] = {}
        for c in rows:
            by_date.setdefault(c.date, []).append(c.meal_type.value)

        history = []
        for offset in range(days):
            d = today - timedelta(days=offset)
            history.append({"date": d.isoformat(), "meals": by_date.get(d, [])})

        total_possible = days * len(MealType)
        return {
            "history": history,
            "summary": {
                "totalMeals": len(rows),
                "totalPossible": total_possible,
                "percentage": percentage(len(rows), total_possible),
                "days": days,
            },
        }

    def admin_counts(self, actor: Profile, *, day: date, hostel_block: Optional[str] = None) -> dict:
        block = scoped_block(actor, hostel_block)
        counts = _empty_counts()
        by_block: dict[str, dict[str, int]] = {}
        rows = self._checkins.list_between(day, day, hostel_block=block)
        for c in rows:
            counts[c.meal_type.value] += 1
            if c.hostel_block:
                by_block.setdefault(c.hostel_block, _empty_counts())[c.meal_type.value] += 1

        return {
            "date": day.isoformat(),
            "counts": {**counts, "total": len(rows), "byBlock": by_block},
            "userRole": actor.role.value,
            "userBlock": actor.hostel_block,
        }

    def attendance_list(
        self,
        actor: Profile,
        *,
        day: date,
        meal_type: Optional[str] = None,
        hostel_block: Optional[str] = None,
    ) -> dict:
        block = scoped_block(actor, hostel_block)
        meal = optional_enum(MealType, meal_type, "Invalid meal type")
        meals = [meal] if meal else list(MealType)

        students = self._users.list_students(hostel_block=block)
        seen: dict[tuple[int, MealType], datetime] = {
            (c.user_id, c.meal_type): c.checked_in_at
            for c in self._checkins.list_between(day, day, hostel_block=block, meal_type=meal)
        }

        ate = {m.value: 0 for m in meals}
        missed = {m.value: 0 for m in meals}
        records = []
        for s in students:
            status = {}
            for m in meals:
                at = seen.get((s.id, m))
                status[m.value] = {"checkedIn": at is not None, "checkedInAt": to_local(at).isoformat() if at else None}
                if at:
                    ate[m.value] += 1
                else:
                    missed[m.value] += 1
            records.append(
                {
                    "userId": s.id,
                    "name": s.name,
                    "registerId": s.register_id,
                    "hostelBlock": s.hostel_block,
                    "department": s.department,
                    "year": s.year,
                    "meals": status,
                }
            )

        return {
            "date": day.isoformat(),
            "records": records,
            "summary": {"total": len(students), "ate": ate, "missed": missed},
            "userRole": actor.role.value,
            "userBlock": actor.hostel_block,
        }

    def attendance_history(
        self,
        actor: Profile,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        hostel_block: Optional[str] = None,
        now: datetime | None = None,
    ) -> dict:
        block = scoped_block(actor, hostel_block)
        today = to_local(now or now_local()).date()
        end = end or today
        start = start or today - timedelta(days=7)
        if start > end:
            raise ValidationError("startDate must be on or before endDate")

        by_day: dict[date, dict[str, int]] = {}
        for c in self._checkins.list_between(start, end, hostel_block=block):
            by_day.setdefault(c.date, _empty_counts())[c.meal_type.value] += 1

        history = [
            {"date": d.isoformat(), "counts": counts, "total": sum(counts.values())}
            for d, counts in sorted(by_day.items())
        ]
        return {
            "history": history,
            "totalStudents": len(self._users.list_students(hostel_block=block)),
            "userRole": actor.role.value,
            "userBlock": actor.hostel_block,
        }
