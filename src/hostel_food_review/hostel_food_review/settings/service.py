from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional

from ..audit.service import AuditService
from ..common.datetime_utils import minutes_of_day, to_local
from ..common.validators import HHMM
from ..core.constants import MAX_MEAL_LABEL
from ..core.enums import MealType
from ..core.exceptions import ValidationError
from ..users.model import Profile
from .model import MealTiming, default_timings
from .repository import SiteSettingsRepository

logger = logging.getLogger(__name__)


def resolve_current_meal(timings: Mapping[MealType, MealTiming], now: datetime) -> Optional[MealTiming]:
    """Meal whose window holds ``now`` (start inclusive, end exclusive), in hostel time."""
    minutes = minutes_of_day(to_local(now))
    for meal in MealType:
        timing = timings.get(meal)
        if timing and timing.contains(minutes):
            return timing
    return None


def meal_windows_display(timings: Mapping[MealType, MealTiming]) -> dict[str, str]:
    return {meal.value: timing.display for meal, timing in timings.items()}


def _coerce_stored(meal: MealType, raw: object) -> Optional[MealTiming]:
    if not isinstance(raw, dict):
        return None
    start, end, label = raw.get("start"), raw.get("end"), raw.get("label")
    if not (isinstance(start, str) and HHMM.match(start) and isinstance(end, str) and HHMM.match(end)):
        return None
    return MealTiming(meal_type=meal, start=start, end=end, label=str(label or meal.value.capitalize()))


class SiteSettingsService:
    """Use case: meal windows and the maintenance switch."""

    def __init__(self, settings: SiteSettingsRepository, audit: AuditService):
        self._settings = settings
        self._audit = audit

    def get_timings(self) -> dict[MealType, MealTiming]:
        timings = default_timings()
        row = self._settings.get()
        stored = (row.meal_timings if row else None) or {}
        if not isinstance(stored, dict):
            logger.warning("Ignoring malformed meal_timings setting")
            return timings

        for meal in MealType:
            timing = _coerce_stored(meal, stored.get(meal.value))
            if timing:
                timings[meal] = timing
        return timings

    def current_meal(self, now: datetime) -> Optional[MealTiming]:
        return resolve_current_meal(self.get_timings(), now)

    def timings_payload(self, *, with_display: bool = False) -> dict:
        return {meal.value: t.to_dict(with_display=with_display) for meal, t in self.get_timings().items()}

    def save_timings(self, actor: Profile, raw: object, *, ip_address: Optional[str] = None) -> dict:
        if not isinstance(raw, dict):
            raise ValidationError("Meal timings are required")

        cleaned: dict[str, dict] = {}
        for meal in MealType:
            entry = raw.get(meal.value)
            if not isinstance(entry, dict):
                raise ValidationError(f"Missing timing for {meal.value}")

            start, end = str(entry.get("start") or ""), str(entry.get("end") or "")
            if not HHMM.match(start) or not HHMM.match(end):
                raise ValidationError(f"Invalid time format for {meal.value}. Use HH:MM")

            timing = MealTiming(meal_type=meal, start=start, end=end, label=str(entry.get("label") or "").strip())
            if timing.start_minutes >= timing.end_minutes:
                raise ValidationError(f"Start time must be before end time for {meal.value}")
            if not timing.label:
                raise ValidationError(f"Label is required for {meal.value}")
            if len(timing.label) > MAX_MEAL_LABEL:
                raise ValidationError(f"Label for {meal.value} must be at most {MAX_MEAL_LABEL} characters")

            cleaned[meal.value] = timing.to_dict()

        self._settings.save_meal_timings(cleaned)
        self._audit.log_event(actor, "update_meal_timings", "site_settings", 1, details=cleaned, ip_address=ip_address)
        return cleaned

    def maintenance_mode(self) -> bool:
        row = self._settings.get()
        return bool(row and row.maintenance_mode)

    def set_maintenance_mode(self, actor: Profile, value: object, *, ip_address: Optional[str] = None) -> bool:
        if not isinstance(value, bool):
            raise ValidationError("maintenance_mode must be a boolean")
        self._settings.set_maintenance_mode(value)
        self._audit.log_event(
            actor,
            "toggle_maintenance",
            "site_settings",
            1,
            details={"maintenance_mode": value},
            ip_address=ip_address,
        )
        logger.info("Maintenance mode set to %s by %s", value, actor.register_id)
        return value
