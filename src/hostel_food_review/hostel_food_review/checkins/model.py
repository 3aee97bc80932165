from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import MealType


@dataclass(frozen=True)
class MealCheckin:
    """One student's attendance at one meal on one day."""

    id: int
    user_id: int
    meal_type: MealType
    date: date
    hostel_block: Optional[str]
    checked_in_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "mealType": self.meal_type.value,
            "date": self.date.isoformat(),
            "hostelBlock": self.hostel_block,
            "checkedInAt": isoformat(self.checked_in_at),
        }
