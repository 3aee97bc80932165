from __future__ import annotations

from typing import Protocol, Sequence


class NotificationReadRepository(Protocol):
    def read_ids(self, user_id: int, notification_ids: Sequence[str]) -> set[str]:
        raise NotImplementedError

    def mark_read(self, user_id: int, notification_ids: Sequence[str]) -> int:
        """Idempotent; already-read ids are left untouched."""

        raise NotImplementedError
