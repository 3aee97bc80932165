from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..blocks.repository import BlockRepository
from ..common.datetime_utils import now_local, parse_iso_date, to_local
from ..common.validators import clamp_int, optional_enum
from ..complaints.repository import ComplaintRepository
from ..core.constants import DEFAULT_ANALYTICS_DAYS, MAX_ANALYTICS_DAYS, RECENT_REVIEWS_LIMIT
from ..core.enums import ComplaintStatus, MealType, Role
from ..core.exceptions import ValidationError
from ..menus.repository import MenuRepository
from ..reviews.repository import ReviewRepository
from ..reviews.service import ReviewService
from ..users.model import Profile
from ..users.scope import scoped_block
from .aggregation import RatingBucket, aggregate_reviews, summarize

logger = logging.getLogger(__name__)

DEFAULT_REPORT_WEEKS = 4
MAX_REPORT_WEEKS = 12


def resolve_range(
    today: date,
    *,
    days: object = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> tuple[date, date]:
    """Explicit from/to when both are given, otherwise the last ``days`` days up to today."""
    if date_from and date_to:
        start = parse_iso_date(date_from, "from")
        end = parse_iso_date(date_to, "to")
        span = (end - start).days
        if span < 0 or span > MAX_ANALYTICS_DAYS:
            raise ValidationError(f"Date range must be 0-{MAX_ANALYTICS_DAYS} days.")
        return start, end

    days = clamp_int(days, default=DEFAULT_ANALYTICS_DAYS, minimum=1, maximum=MAX_ANALYTICS_DAYS)
    return today - timedelta(days=days), today


class AnalyticsService:
    """Use case: staff dashboards over reviews and complaints."""

    def __init__(
        self,
        reviews: ReviewRepository,
        complaints: ComplaintRepository,
        menus: MenuRepository,
        blocks: BlockRepository,
        review_service: ReviewService,
    ):
        self._reviews = reviews
        self._complaints = complaints
        self._menus = menus
        self._blocks = blocks
        self._review_service = review_service

    def dashboard(
        self,
        actor: Profile,
        *,
        days: object = None,
        meal_type: Optional[str] = None,
        hostel_block: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        now: datetime | None = None,
    ) -> dict:
        block = scoped_block(actor, hostel_block)
        meal = optional_enum(MealType, meal_type, "Invalid meal type")
        start, end = resolve_range(to_local(now or now_local()).date(), days=days, date_from=date_from, date_to=date_to)

        reviews = list(self._reviews.list_between(start, end, meal_type=meal, hostel_block=block))
        special_days = self._menus.special_labels(start, end)
        is_super = actor.role == Role.SUPER_ADMIN

        agg = aggregate_reviews(reviews, special_days, include_blocks=is_super)
        result = summarize(agg, special_days)

        recent = sorted(reviews, key=lambda r: (r.created_at, r.id), reverse=True)[:RECENT_REVIEWS_LIMIT]
        result.update(
            recentReviews=self._review_service.enrich(recent),
            hostelBlocks=[b.name for b in self._blocks.list_all()],
            range={"from": start.isoformat(), "to": end.isoformat()},
            userRole=actor.role.value,
            userBlock=actor.hostel_block,
        )
        if not is_super:
            result["blockStats"] = []
        logger.debug("Analytics %s..%s block=%s reviews=%d", start, end, block, len(reviews))
        return result

    def weekly_report(
        self,
        actor: Profile,
        *,
        weeks: object = None,
        hostel_block: Optional[str] = None,
        now: datetime | None = None,
    ) -> dict:
        block = scoped_block(actor, hostel_block)
        weeks = clamp_int(weeks, default=DEFAULT_REPORT_WEEKS, minimum=1, maximum=MAX_REPORT_WEEKS)
        now = to_local(now or now_local())
        today = now.date()

        # Consecutive, non-overlapping 7-day windows ending today, oldest first
        windows = []
        for i in reversed(range(weeks)):
            end = today - timedelta(days=7 * i)
            windows.append((end - timedelta(days=6), end))
        period_start, period_end = windows[0][0], windows[-1][1]

        reviews = self._reviews.list_between(period_start, period_end, hostel_block=block)
        weekly = []
        for start, end in windows:
            overall = RatingBucket()
            meals: dict[MealType, RatingBucket] = {}
            for r in reviews:
                if start <= r.date <= end:
                    overall.add(r.rating, r.sentiment)
                    meals.setdefault(r.meal_type, RatingBucket()).add(r.rating)
            weekly.append(
                {
                    "weekLabel": f"{start.isoformat()} to {end.isoformat()}",
                    "totalReviews": overall.count,
                    "avgRating": overall.avg,
                    "positive": overall.positive,
                    "neutral": overall.neutral,
                    "negative": overall.negative,
                    "mealBreakdown": {
                        m.value: {"count": b.count, "avgRating": b.avg} for m, b in meals.items()
                    },
                }
            )

        complaints = self._complaints.list_between(period_start, period_end, hostel_block=block)
        statuses = Counter(c.status for c in complaints)
        complaint_stats = {
            "total": len(complaints),
            "pending": statuses[ComplaintStatus.PENDING],
            "inProgress": statuses[ComplaintStatus.IN_PROGRESS],
            "resolved": statuses[ComplaintStatus.RESOLVED],
            "byCategory": dict(Counter(c.category.value for c in complaints)),
        }

        return {
            "weeklyData": weekly,
            "complaintStats": complaint_stats,
            "hostelBlock": block or "all",
            "generatedAt": now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
