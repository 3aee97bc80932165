from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import MealType, Sentiment
from .model import Review


class ReviewRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        day: date,
        meal_type: MealType,
        rating: int,
        review_text: Optional[str],
        sentiment: Sentiment,
        anonymous: bool,
        created_at: datetime,
    ) -> int:
        """Raises DuplicateEntryError for a second review of the same meal on the same day."""

        raise NotImplementedError

    def get(self, review_id: int) -> Optional[Review]:
        raise NotImplementedError

    def update(self, review_id: int, *, rating: int, review_text: Optional[str], sentiment: Sentiment) -> bool:
        raise NotImplementedError

    def delete(self, review_id: int) -> bool:
        raise NotImplementedError

    def set_reply(self, review_id: int, *, reply: str, replied_by: int, replied_at: datetime) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        user_id: Optional[int] = None,
        hostel_block: Optional[str] = None,
        day: Optional[date] = None,
        meal_type: Optional[MealType] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[Sequence[Review], int]:
        """Newest first. hostel_block filters on the reviewer's block (students only)."""

        raise NotImplementedError

    def list_between(
        self,
        start: date,
        end: date,
        *,
        meal_type: Optional[MealType] = None,
        hostel_block: Optional[str] = None,
    ) -> Sequence[Review]:
        """Reviews in the inclusive date range with reviewer_block filled, oldest first."""

        raise NotImplementedError

    def list_replied_since(self, user_id: int, since: datetime, *, limit: int = 5) -> Sequence[Review]:
        raise NotImplementedError
