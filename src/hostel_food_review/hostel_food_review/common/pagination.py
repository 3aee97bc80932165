from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .validators import clamp_int


@dataclass(frozen=True)
class PageRequest:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @classmethod
    def parse(cls, page: Any, page_size: Any, *, default_size: int, min_size: int, max_size: int) -> "PageRequest":
        return cls(
            page=clamp_int(page, default=1, minimum=1, maximum=10**6),
            page_size=clamp_int(page_size, default=default_size, minimum=min_size, maximum=max_size),
        )

    def describe(self, total: int) -> dict:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": total,
            "totalPages": math.ceil(total / self.page_size) if total else 0,
        }
