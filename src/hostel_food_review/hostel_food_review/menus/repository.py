from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import MealType
from .model import Menu


class MenuRepository(Protocol):
    def list_for_date(self, day: date, *, hostel_block: Optional[str] = None) -> Sequence[Menu]:
        """Global menus for the day plus, when given, the block's own menus."""

        raise NotImplementedError

    def upsert(
        self,
        *,
        day: date,
        meal_type: MealType,
        items: str,
        timing: str,
        special_label: Optional[str],
        hostel_block: Optional[str],
    ) -> int:
        raise NotImplementedError

    def special_labels(self, start: date, end: date) -> dict[date, str]:
        """Dates in range with any special menu, mapped to the first label."""

        raise NotImplementedError
