from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import MealType
from .model import MealCheckin


class CheckinRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        meal_type: MealType,
        date: date,
        hostel_block: Optional[str],
        checked_in_at: datetime,
    ) -> int:
        """Raises DuplicateEntryError when the user already checked in for this meal today."""

        raise NotImplementedError

    def get(self, *, user_id: int, meal_type: MealType, date: date) -> Optional[MealCheckin]:
        raise NotImplementedError

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_id: Optional[int] = None,
        hostel_block: Optional[str] = None,
        meal_type: Optional[MealType] = None,
    ) -> Sequence[MealCheckin]:
        """Inclusive date range, oldest first."""

        raise NotImplementedError
