from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ComplaintCategory, ComplaintStatus
from .model import Complaint


class ComplaintRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        hostel_block: str,
        complaint_text: str,
        category: ComplaintCategory,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, complaint_id: int) -> Optional[Complaint]:
        raise NotImplementedError

    def update(
        self,
        complaint_id: int,
        *,
        status: Optional[ComplaintStatus] = None,
        reply: Optional[str] = None,
        replied_by: Optional[int] = None,
        replied_at: Optional[datetime] = None,
    ) -> bool:
        """Only the given fields change; a reply sets replied_by and replied_at with it."""

        raise NotImplementedError

    def search(
        self,
        *,
        user_id: Optional[int] = None,
        hostel_block: Optional[str] = None,
        status: Optional[ComplaintStatus] = None,
        category: Optional[ComplaintCategory] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[Sequence[Complaint], int]:
        """Newest first."""

        raise NotImplementedError

    def list_between(self, start: date, end: date, *, hostel_block: Optional[str] = None) -> Sequence[Complaint]:
        """Complaints created on the inclusive date range, oldest first."""

        raise NotImplementedError

    def list_replied_since(self, user_id: int, since: datetime, *, limit: int = 5) -> Sequence[Complaint]:
        raise NotImplementedError
