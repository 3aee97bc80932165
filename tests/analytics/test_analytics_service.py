from __future__ import annotations

from datetime import date, datetime

import pytest

from src.hostel_food_review.hostel_food_review.analytics.aggregation import aggregate_reviews, summarize
from src.hostel_food_review.hostel_food_review.analytics.service import AnalyticsService, resolve_range
from src.hostel_food_review.hostel_food_review.audit.service import AuditService
from src.hostel_food_review.hostel_food_review.common.stats import average, percentage, round_half_up
from src.hostel_food_review.hostel_food_review.core.enums import ComplaintCategory, MealType, Sentiment
from src.hostel_food_review.hostel_food_review.core.exceptions import ValidationError
from src.hostel_food_review.hostel_food_review.reviews.service import ReviewService

TODAY = date(2026, 3, 4)


@pytest.fixture
def svc(repos):
    review_service = ReviewService(repos.reviews, repos.users, repos.blocks, AuditService(repos.audit))
    return AnalyticsService(repos.reviews, repos.complaints, repos.menus, repos.blocks, review_service)


@pytest.fixture
def seeded(repos, student):
    other = repos.users.add("11245120", name="Deepa", hostel_block="Visalakshi Hostel")
    rows = [
        (student, date(2026, 3, 4), MealType.LUNCH, 5, Sentiment.POSITIVE, datetime(2026, 3, 4, 13, 0)),
        (student, date(2026, 3, 3), MealType.DINNER, 1, Sentiment.NEGATIVE, datetime(2026, 3, 3, 20, 0)),
        (other, date(2026, 3, 2), MealType.LUNCH, 2, Sentiment.NEUTRAL, datetime(2026, 3, 2, 13, 0)),
    ]
    for user, day, meal, rating, sentiment, created in rows:
        repos.reviews.create(
            user_id=user.id, day=day, meal_type=meal, rating=rating, review_text=None,
            sentiment=sentiment, anonymous=False, created_at=created,
        )
    repos.menus.upsert(
        day=date(2026, 3, 4), meal_type=MealType.LUNCH, items="Biryani", timing="12-3",
        special_label="Festival Feast", hostel_block=None,
    )
    return other


def test_rounding_matches_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(2.675, 2) == 2.68
    assert average(8, 3) == 2.67
    assert average(0, 0) == 0
    assert percentage(1, 3) == 33
    assert percentage(1, 0) == 0


def test_super_admin_dashboard(svc, seeded, super_admin, fixed_now):
    result = svc.dashboard(super_admin, days=7, now=fixed_now)

    assert result["overview"] == {
        "totalReviews": 3,
        "avgRating": 2.67,
        "totalStudents": 2,
        "alertCount": 1,
        "lowRatingPercentage": 67,
    }
    assert result["range"] == {"from": "2026-02-25", "to": "2026-03-04"}
    assert [d["date"] for d in result["dailyRatings"]] == ["2026-03-02", "2026-03-03", "2026-03-04"]
    assert result["dailyRatings"][-1]["isSpecial"] is True
    assert result["dailyRatings"][-1]["specialLabel"] == "Festival Feast"
    assert result["mealRatings"] == [
        {"mealType": "lunch", "avgRating": 3.5, "count": 2},
        {"mealType": "dinner", "avgRating": 1.0, "count": 1},
    ]
    assert result["sentimentBreakdown"] == {"positive": 1, "neutral": 1, "negative": 1}
    assert [b["block"] for b in result["blockStats"]] == ["Annapoorani Hostel", "Visalakshi Hostel"]
    assert result["specialDayStats"]["special"] == {"avgRating": 5.0, "count": 1}
    assert result["specialDayStats"]["normal"] == {"avgRating": 1.5, "count": 2}
    assert result["specialDayStats"]["specialDays"] == [{"date": "2026-03-04", "label": "Festival Feast"}]
    assert result["dayOfWeekHeatmap"][3] == {"day": "Wed", "breakfast": 0, "lunch": 5.0, "snacks": 0, "dinner": 0}
    assert result["weekOverWeek"] == [{"week": "2026-03-01", "reviews": 3, "avgRating": 2.67, "positiveRate": 33}]
    assert len(result["recentReviews"]) == 3
    assert result["recentReviews"][0]["mealType"] == "lunch"


def test_admin_dashboard_is_block_scoped(svc, seeded, admin, fixed_now):
    result = svc.dashboard(admin, days=7, hostel_block="Visalakshi Hostel", now=fixed_now)

    assert result["overview"]["totalReviews"] == 2
    assert result["blockStats"] == []
    assert result["userBlock"] == admin.hostel_block


def test_dashboard_meal_filter(svc, seeded, super_admin, fixed_now):
    result = svc.dashboard(super_admin, meal_type="dinner", now=fixed_now)
    assert result["overview"]["totalReviews"] == 1

    with pytest.raises(ValidationError):
        svc.dashboard(super_admin, meal_type="brunch", now=fixed_now)


def test_empty_dashboard_raises_alert():
    result = summarize(aggregate_reviews([], {}), {})
    assert result["overview"]["alertCount"] == 1
    assert result["overview"]["avgRating"] == 0
    assert result["weekOverWeek"] == []


def test_resolve_range():
    assert resolve_range(TODAY) == (date(2026, 2, 25), TODAY)
    assert resolve_range(TODAY, days="30") == (date(2026, 2, 2), TODAY)
    assert resolve_range(TODAY, date_from="2026-01-01", date_to="2026-01-31") == (date(2026, 1, 1), date(2026, 1, 31))

    with pytest.raises(ValidationError):
        resolve_range(TODAY, date_from="2026-02-01", date_to="2026-01-01")
    with pytest.raises(ValidationError):
        resolve_range(TODAY, date_from="2024-01-01", date_to="2026-01-01")


def test_weekly_report_windows_and_complaints(svc, repos, seeded, student, super_admin, fixed_now):
    repos.complaints.create(
        user_id=student.id, hostel_block=student.hostel_block, complaint_text="Cold rice",
        category=ComplaintCategory.TASTE, created_at=datetime(2026, 3, 3, 9, 0),
    )

    report = svc.weekly_report(super_admin, weeks="2", now=fixed_now)

    assert [w["weekLabel"] for w in report["weeklyData"]] == [
        "2026-02-19 to 2026-02-25",
        "2026-02-26 to 2026-03-04",
    ]
    assert report["weeklyData"][0]["totalReviews"] == 0
    current = report["weeklyData"][1]
    assert current["totalReviews"] == 3
    assert current["mealBreakdown"]["lunch"] == {"count": 2, "avgRating": 3.5}
    assert report["complaintStats"] == {
        "total": 1, "pending": 1, "inProgress": 0, "resolved": 0, "byCategory": {"taste": 1},
    }
    assert report["hostelBlock"] == "all"
    assert report["generatedAt"] == "2026-03-04T08:00:00Z"


def test_weekly_report_clamps_weeks(svc, super_admin, fixed_now):
    assert len(svc.weekly_report(super_admin, weeks=50, now=fixed_now)["weeklyData"]) == 12
