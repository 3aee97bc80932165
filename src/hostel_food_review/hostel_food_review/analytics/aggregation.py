"""Single-pass aggregation of review rows into dashboard figures."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from ..common.datetime_utils import sunday_index, week_start
from ..common.stats import average, percentage
from ..core.constants import ALERT_AVG_RATING, ALERT_LOW_RATING_RATIO, LOW_RATING_THRESHOLD
from ..core.enums import MealType, Sentiment
from ..reviews.model import Review

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass
class RatingBucket:
    total: int = 0
    count: int = 0
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    def add(self, rating: int, sentiment: Sentiment | None = None) -> None:
        self.total += rating
        self.count += 1
        if sentiment == Sentiment.POSITIVE:
            self.positive += 1
        elif sentiment == Sentiment.NEGATIVE:
            self.negative += 1
        elif sentiment == Sentiment.NEUTRAL:
            self.neutral += 1

    @property
    def avg(self) -> float:
        return average(self.total, self.count)


@dataclass
class ReviewAggregate:
    overall: RatingBucket = field(default_factory=RatingBucket)
    low_ratings: int = 0
    students: set = field(default_factory=set)
    daily: dict = field(default_factory=lambda: defaultdict(RatingBucket))
    meals: dict = field(default_factory=lambda: defaultdict(RatingBucket))
    blocks: dict = field(default_factory=lambda: defaultdict(RatingBucket))
    weeks: dict = field(default_factory=lambda: defaultdict(RatingBucket))
    heatmap: dict = field(default_factory=lambda: defaultdict(RatingBucket))
    special: RatingBucket = field(default_factory=RatingBucket)
    normal: RatingBucket = field(default_factory=RatingBucket)

    @property
    def alert_count(self) -> int:
        # No reviews: avg is 0, which is below the alert threshold
        low_ratio = self.low_ratings / max(self.overall.count, 1)
        return 1 if self.overall.avg < ALERT_AVG_RATING or low_ratio > ALERT_LOW_RATING_RATIO else 0


def aggregate_reviews(
    reviews: Iterable[Review],
    special_days: Mapping[date, str],
    *,
    include_blocks: bool = False,
) -> ReviewAggregate:
    agg = ReviewAggregate()
    for r in reviews:
        agg.overall.add(r.rating, r.sentiment)
        if r.rating <= LOW_RATING_THRESHOLD:
            agg.low_ratings += 1
        agg.students.add(r.user_id)

        agg.daily[r.date].add(r.rating)
        agg.meals[r.meal_type].add(r.rating)
        agg.weeks[week_start(r.date)].add(r.rating, r.sentiment)
        agg.heatmap[(sunday_index(r.date), r.meal_type)].add(r.rating)
        (agg.special if r.date in special_days else agg.normal).add(r.rating)

        if include_blocks:
            agg.blocks[r.reviewer_block or "Unknown"].add(r.rating, r.sentiment)
    return agg


def summarize(agg: ReviewAggregate, special_days: Mapping[date, str]) -> dict:
    total = agg.overall.count
    return {
        "overview": {
            "totalReviews": total,
            "avgRating": agg.overall.avg,
            "totalStudents": len(agg.students),
            "alertCount": agg.alert_count,
            "lowRatingPercentage": percentage(agg.low_ratings, max(total, 1)),
        },
        "dailyRatings": [
            {
                "date": d.isoformat(),
                "avgRating": b.avg,
                "count": b.count,
                "isSpecial": d in special_days,
                "specialLabel": special_days.get(d),
            }
            for d, b in sorted(agg.daily.items())
        ],
        "mealRatings": [
            {"mealType": m.value, "avgRating": agg.meals[m].avg, "count": agg.meals[m].count}
            for m in MealType
            if m in agg.meals
        ],
        "sentimentBreakdown": {
            "positive": agg.overall.positive,
            "neutral": agg.overall.neutral,
            "negative": agg.overall.negative,
        },
        "blockStats": sorted(
            (
                {
                    "block": block,
                    "totalReviews": b.count,
                    "avgRating": b.avg,
                    "positive": b.positive,
                    "negative": b.negative,
                }
                for block, b in agg.blocks.items()
            ),
            key=lambda row: row["totalReviews"],
            reverse=True,
        ),
        "specialDayStats": {
            "special": {"avgRating": agg.special.avg, "count": agg.special.count},
            "normal": {"avgRating": agg.normal.avg, "count": agg.normal.count},
            "specialDayCount": len(special_days),
            "specialDays": [{"date": d.isoformat(), "label": label} for d, label in sorted(special_days.items())],
        },
        "dayOfWeekHeatmap": [
            {"day": name, **{m.value: agg.heatmap[(idx, m)].avg if (idx, m) in agg.heatmap else 0 for m in MealType}}
            for idx, name in enumerate(DAY_NAMES)
        ],
        "weekOverWeek": [
            {
                "week": start.isoformat(),
                "reviews": b.count,
                "avgRating": b.avg,
                "positiveRate": percentage(b.positive, b.count),
            }
            for start, b in sorted(agg.weeks.items())
        ],
    }
