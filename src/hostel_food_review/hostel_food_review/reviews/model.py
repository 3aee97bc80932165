from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import MealType, Sentiment


@dataclass(frozen=True)
class Review:
    id: int
    user_id: int
    date: date
    meal_type: MealType
    rating: int
    review_text: Optional[str]
    sentiment: Sentiment
    anonymous: bool
    created_at: datetime
    admin_reply: Optional[str] = None
    admin_reply_by: Optional[int] = None
    admin_replied_at: Optional[datetime] = None
    # Filled by queries that join the reviewer's profile
    reviewer_block: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date.isoformat(),
            "mealType": self.meal_type.value,
            "rating": self.rating,
            "reviewText": self.review_text,
            "sentiment": self.sentiment.value,
            "anonymous": self.anonymous,
            "adminReply": self.admin_reply,
            "adminReplyBy": self.admin_reply_by,
            "adminRepliedAt": isoformat(self.admin_replied_at),
            "createdAt": isoformat(self.created_at),
        }
