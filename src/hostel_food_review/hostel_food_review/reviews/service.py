from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from ..audit.service import AuditService
from ..blocks.repository import BlockRepository
from ..common.datetime_utils import now_local, to_db, to_local
from ..common.pagination import PageRequest
from ..common.validators import optional_enum, require_enum, require_rating
from ..core.constants import MAX_REVIEW_REPLY, MAX_REVIEW_TEXT, REVIEW_DELETE_WINDOW_HOURS
from ..core.enums import MealType, Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from ..users.model import Profile
from ..users.repository import UserRepository
from ..users.scope import scoped_block
from .model import Review
from .repository import ReviewRepository
from .sentiment import analyze_sentiment

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


def _clean_text(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Review text must be text")
    if len(value) > MAX_REVIEW_TEXT:
        raise ValidationError(f"Review text must be under {MAX_REVIEW_TEXT} characters")
    return value.strip() or None


def _parse_id(value: object, message: str = "Review ID is required") -> int:
    if value in (None, ""):
        raise ValidationError(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid review ID")


class ReviewService:
    """Use case: students rate meals; staff read and reply."""

    def __init__(
        self,
        reviews: ReviewRepository,
        users: UserRepository,
        blocks: BlockRepository,
        audit: AuditService,
    ):
        self._reviews = reviews
        self._users = users
        self._blocks = blocks
        self._audit = audit

    def enrich(self, reviews: list[Review]) -> list[dict]:
        """Attach reviewer display fields; anonymous reviews hide the name."""
        profiles = self._users.get_many(r.user_id for r in reviews)
        rows = []
        for r in reviews:
            row = r.to_dict()
            p = profiles.get(r.user_id)
            row.update(
                userName=ANONYMOUS if r.anonymous else (p.name if p else "Unknown"),
                hostelBlock=p.hostel_block if p else r.reviewer_block,
                registerId=None if r.anonymous or not p else p.register_id,
                department=p.department if p else None,
                year=p.year if p else None,
            )
            rows.append(row)
        return rows

    def list_reviews(
        self,
        user: Profile,
        *,
        page: PageRequest,
        day: Optional[date] = None,
        meal_type: Optional[str] = None,
        hostel_block: Optional[str] = None,
    ) -> dict:
        meal = optional_enum(MealType, meal_type, "Invalid meal type")
        if user.is_student:
            reviews, total = self._reviews.search(
                user_id=user.id, day=day, meal_type=meal, offset=page.offset, limit=page.page_size
            )
        else:
            block = scoped_block(user, hostel_block)
            reviews, total = self._reviews.search(
                hostel_block=block, day=day, meal_type=meal, offset=page.offset, limit=page.page_size
            )

        return {
            "reviews": self.enrich(list(reviews)),
            "userRole": user.role.value,
            "userBlock": user.hostel_block,
            "hostelBlocks": [b.name for b in self._blocks.list_all()] if user.role == Role.SUPER_ADMIN else [],
            "pagination": page.describe(total),
        }

    def create_review(self, user: Profile, body: dict, *, now: datetime | None = None) -> Review:
        if not user.is_student:
            raise AuthorizationError("Only students can submit reviews")

        meal_type, rating = body.get("mealType"), body.get("rating")
        if not meal_type or rating is None:
            raise ValidationError("Meal type and rating are required")
        meal = require_enum(
            MealType,
            meal_type,
            f"Invalid meal type. Must be one of: {', '.join(m.value for m in MealType)}",
        )
        rating = require_rating(rating)
        text = _clean_text(body.get("reviewText"))
        anonymous = body.get("anonymous") is True

        now = to_local(now or now_local())
        try:
            review_id = self._reviews.create(
                user_id=user.id,
                day=now.date(),
                meal_type=meal,
                rating=rating,
                review_text=text,
                sentiment=analyze_sentiment(text),
                anonymous=anonymous,
                created_at=to_db(now),
            )
        except DuplicateEntryError:
            raise ConflictError("You have already reviewed this meal today")

        review = self._reviews.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        logger.info("Review %s by %s for %s", review_id, user.register_id, meal.value)
        return review

    def _own_review(self, user: Profile, review_id: object, action: str) -> Review:
        if not user.is_student:
            raise AuthorizationError(f"Only students can {action} reviews")
        review = self._reviews.get(_parse_id(review_id))
        if not review or review.user_id != user.id:
            raise NotFoundError("Review not found")
        return review

    def update_review(self, user: Profile, body: dict, *, now: datetime | None = None) -> Review:
        review = self._own_review(user, body.get("reviewId", body.get("id")), "edit")

        now = to_local(now or now_local())
        if review.date != now.date():
            raise AuthorizationError("Reviews can only be edited on the same day")

        rating, text = review.rating, review.review_text
        changed = False
        if "rating" in body and body.get("rating") is not None:
            rating = require_rating(body.get("rating"))
            changed = True
        if "reviewText" in body:
            text = _clean_text(body.get("reviewText"))
            changed = True
        if not changed:
            raise ValidationError("No fields to update")

        self._reviews.update(review.id, rating=rating, review_text=text, sentiment=analyze_sentiment(text))
        return self._reviews.get(review.id) or review

    def delete_review(self, user: Profile, review_id: object, *, now: datetime | None = None) -> None:
        review = self._own_review(user, review_id, "delete")

        now = to_local(now or now_local())
        if now - to_local(review.created_at) > timedelta(hours=REVIEW_DELETE_WINDOW_HOURS):
            raise AuthorizationError("Reviews can only be deleted within 24 hours of submission")

        self._reviews.delete(review.id)

    def reply(
        self,
        actor: Profile,
        body: dict,
        *,
        ip_address: Optional[str] = None,
        now: datetime | None = None,
    ) -> None:
        review_id = _parse_id(body.get("reviewId"))
        reply = body.get("reply")
        if not isinstance(reply, str) or not reply.strip():
            raise ValidationError("Reply text is required")
        reply = reply.strip()
        if len(reply) > MAX_REVIEW_REPLY:
            raise ValidationError(f"Reply must be under {MAX_REVIEW_REPLY} characters")

        review = self._reviews.get(review_id)
        if not review:
            raise NotFoundError("Review not found")

        if actor.role == Role.ADMIN:
            reviewer = self._users.get_by_id(review.user_id)
            if not actor.hostel_block or not reviewer or reviewer.hostel_block != actor.hostel_block:
                raise AuthorizationError("You can only reply to reviews from your hostel block")

        self._reviews.set_reply(review.id, reply=reply, replied_by=actor.id, replied_at=to_db(now or now_local()))
        self._audit.log_event(
            actor,
            "review_reply",
            "review",
            review.id,
            details={"reply": reply[:200]},
            ip_address=ip_address,
        )
