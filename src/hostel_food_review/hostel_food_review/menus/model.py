from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import MealType


@dataclass(frozen=True)
class Menu:
    """What is served for one meal on one day; hostel_block None means every block."""

    id: int
    date: date
    meal_type: MealType
    items: str
    timing: str
    special_label: Optional[str] = None
    hostel_block: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "mealType": self.meal_type.value,
            "items": self.items,
            "timing": self.timing,
            "specialLabel": self.special_label,
            "hostelBlock": self.hostel_block,
            "updatedAt": isoformat(self.updated_at),
        }
