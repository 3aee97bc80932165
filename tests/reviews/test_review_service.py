from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.hostel_food_review.hostel_food_review.audit.service import AuditService
from src.hostel_food_review.hostel_food_review.common.pagination import PageRequest
from src.hostel_food_review.hostel_food_review.core.enums import Sentiment
from src.hostel_food_review.hostel_food_review.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.hostel_food_review.hostel_food_review.reviews.sentiment import analyze_sentiment
from src.hostel_food_review.hostel_food_review.reviews.service import ReviewService

PAGE = PageRequest(page=1, page_size=50)


@pytest.fixture
def svc(repos):
    return ReviewService(repos.reviews, repos.users, repos.blocks, AuditService(repos.audit))


@pytest.mark.parametrize(
    "text,expected",
    [
        ("The sambar was hot and tasty", Sentiment.POSITIVE),
        ("Rice was cold and stale, found a hair", Sentiment.NEGATIVE),
        ("Good taste but too salty", Sentiment.NEUTRAL),
        ("", Sentiment.NEUTRAL),
        (None, Sentiment.NEUTRAL),
    ],
)
def test_keyword_sentiment(text, expected):
    assert analyze_sentiment(text) == expected


def test_student_creates_review_with_sentiment(svc, student, fixed_now):
    review = svc.create_review(
        student,
        {"mealType": "lunch", "rating": 5, "reviewText": "  Delicious biryani  ", "anonymous": True},
        now=fixed_now,
    )

    assert review.rating == 5
    assert review.review_text == "Delicious biryani"
    assert review.sentiment == Sentiment.POSITIVE
    assert review.anonymous is True
    assert review.date.isoformat() == "2026-03-04"


def test_second_review_for_same_meal_conflicts(svc, student, fixed_now):
    svc.create_review(student, {"mealType": "lunch", "rating": 4}, now=fixed_now)
    with pytest.raises(ConflictError, match="already reviewed this meal today"):
        svc.create_review(student, {"mealType": "lunch", "rating": 2}, now=fixed_now)


@pytest.mark.parametrize(
    "body",
    [
        {"mealType": "lunch"},
        {"mealType": "brunch", "rating": 3},
        {"mealType": "lunch", "rating": 6},
        {"mealType": "lunch", "rating": True},
        {"mealType": "lunch", "rating": "4"},
        {"mealType": "lunch", "rating": 3, "reviewText": "x" * 2001},
    ],
)
def test_create_review_validation(svc, student, fixed_now, body):
    with pytest.raises(ValidationError):
        svc.create_review(student, body, now=fixed_now)


def test_only_students_review(svc, admin, fixed_now):
    with pytest.raises(AuthorizationError):
        svc.create_review(admin, {"mealType": "lunch", "rating": 3}, now=fixed_now)


def test_update_same_day_recomputes_sentiment(svc, student, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 4, "reviewText": "nice"}, now=fixed_now)

    updated = svc.update_review(
        student, {"id": review.id, "rating": 1, "reviewText": "cold and bland"}, now=fixed_now + timedelta(hours=1)
    )
    assert updated.rating == 1
    assert updated.sentiment == Sentiment.NEGATIVE


def test_update_next_day_is_forbidden(svc, student, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 4}, now=fixed_now)
    with pytest.raises(AuthorizationError, match="same day"):
        svc.update_review(student, {"reviewId": review.id, "rating": 2}, now=fixed_now + timedelta(days=1))


def test_update_requires_a_field(svc, student, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 4}, now=fixed_now)
    with pytest.raises(ValidationError, match="No fields to update"):
        svc.update_review(student, {"reviewId": review.id}, now=fixed_now)


def test_cannot_touch_someone_elses_review(svc, repos, student, fixed_now):
    other = repos.users.add("11245109", name="Other")
    review = svc.create_review(other, {"mealType": "lunch", "rating": 4}, now=fixed_now)

    with pytest.raises(NotFoundError):
        svc.delete_review(student, review.id, now=fixed_now)


def test_delete_window_is_24_hours(svc, repos, student, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 4}, now=fixed_now)
    with pytest.raises(AuthorizationError, match="within 24 hours"):
        svc.delete_review(student, review.id, now=fixed_now + timedelta(hours=25))

    svc.delete_review(student, str(review.id), now=fixed_now + timedelta(hours=23))
    assert review.id not in repos.reviews.rows


def test_enrich_hides_anonymous_reviewer(svc, student, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 3, "anonymous": True}, now=fixed_now)

    row = svc.enrich([review])[0]
    assert row["userName"] == "Anonymous"
    assert row["registerId"] is None
    assert row["hostelBlock"] == student.hostel_block


def test_student_lists_only_own_reviews(svc, repos, student, fixed_now):
    other = repos.users.add("11245109", name="Other")
    svc.create_review(student, {"mealType": "lunch", "rating": 3}, now=fixed_now)
    svc.create_review(other, {"mealType": "lunch", "rating": 5}, now=fixed_now)

    result = svc.list_reviews(student, page=PAGE)
    assert [r["userId"] for r in result["reviews"]] == [student.id]
    assert result["pagination"] == {"page": 1, "pageSize": 50, "total": 1, "totalPages": 1}
    assert result["hostelBlocks"] == []


def test_admin_lists_own_block_reviews(svc, repos, student, admin, fixed_now):
    outsider = repos.users.add("11245110", name="Outsider", hostel_block="Visalakshi Hostel")
    svc.create_review(student, {"mealType": "lunch", "rating": 3}, now=fixed_now)
    svc.create_review(outsider, {"mealType": "lunch", "rating": 5}, now=fixed_now)

    result = svc.list_reviews(admin, page=PAGE, hostel_block="Visalakshi Hostel")
    assert [r["userId"] for r in result["reviews"]] == [student.id]


def test_super_admin_sees_block_list(svc, super_admin):
    result = svc.list_reviews(super_admin, page=PAGE)
    assert result["hostelBlocks"] == ["Annapoorani Hostel", "Visalakshi Hostel"]


def test_admin_reply_is_block_scoped_and_audited(svc, repos, student, admin, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 2}, now=fixed_now)
    svc.reply(admin, {"reviewId": review.id, "reply": " We will fix it "}, ip_address="1.2.3.4", now=fixed_now)

    stored = repos.reviews.get(review.id)
    assert stored.admin_reply == "We will fix it"
    assert stored.admin_reply_by == admin.id
    assert stored.admin_replied_at == datetime(2026, 3, 4, 13, 30)
    assert repos.audit.actions == ["review_reply"]

    outsider = repos.users.add("11245110", name="Outsider", hostel_block="Visalakshi Hostel")
    foreign = svc.create_review(outsider, {"mealType": "lunch", "rating": 2}, now=fixed_now)
    with pytest.raises(AuthorizationError):
        svc.reply(admin, {"reviewId": foreign.id, "reply": "Hi"}, now=fixed_now)


def test_reply_requires_text(svc, student, admin, fixed_now):
    review = svc.create_review(student, {"mealType": "lunch", "rating": 2}, now=fixed_now)
    with pytest.raises(ValidationError, match="Reply text is required"):
        svc.reply(admin, {"reviewId": review.id, "reply": "   "}, now=fixed_now)
