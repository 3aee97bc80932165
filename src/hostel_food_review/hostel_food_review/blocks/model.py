from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class HostelBlock:
    """A dormitory building students are assigned to."""

    id: int
    name: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}
