from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..common.datetime_utils import format_time_12h, parse_hhmm
from ..core.constants import DEFAULT_MEAL_TIMINGS
from ..core.enums import MealType


@dataclass(frozen=True)
class MealTiming:
    meal_type: MealType
    start: str
    end: str
    label: str

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_hhmm(self.end)

    @property
    def display(self) -> str:
        return f"{format_time_12h(self.start)} – {format_time_12h(self.end)}"

    def contains(self, minutes: int) -> bool:
        return self.start_minutes <= minutes < self.end_minutes

    def to_dict(self, *, with_display: bool = False) -> dict:
        data = {"start": self.start, "end": self.end, "label": self.label}
        if with_display:
            data["display"] = self.display
        return data


def default_timings() -> dict[MealType, MealTiming]:
    return {
        MealType(key): MealTiming(meal_type=MealType(key), start=v["start"], end=v["end"], label=v["label"])
        for key, v in DEFAULT_MEAL_TIMINGS.items()
    }


@dataclass(frozen=True)
class SiteSettings:
    maintenance_mode: bool = False
    meal_timings: Optional[dict] = field(default=None)
