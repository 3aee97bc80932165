from __future__ import annotations

from typing import Optional, Protocol

from .model import SiteSettings


class SiteSettingsRepository(Protocol):
    def get(self) -> Optional[SiteSettings]:
        """The single settings row, or None before it is first written."""

        raise NotImplementedError

    def save_meal_timings(self, timings: dict) -> None:
        raise NotImplementedError

    def set_maintenance_mode(self, enabled: bool) -> None:
        raise NotImplementedError
