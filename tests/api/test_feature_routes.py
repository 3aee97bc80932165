from __future__ import annotations

from datetime import date, datetime

import pytest

from src.hostel_food_review.hostel_food_review.core.enums import MealType, Sentiment

SERVICE_PKG = "src.hostel_food_review.hostel_food_review"


@pytest.fixture
def frozen_clock(monkeypatch, fixed_now):
    for module in ("checkins.service", "reviews.service", "notifications.service", "exports.service"):
        monkeypatch.setattr(f"{SERVICE_PKG}.{module}.now_local", lambda: fixed_now)
    return fixed_now


def test_guards(client, login, student):
    assert client.get("/api/notifications").status_code == 401
    assert client.post("/api/checkin").status_code == 401

    login(student)
    response = client.get("/api/admin/export?type=reviews")
    assert response.status_code == 403
    assert response.get_json() == {"error": "Unauthorized"}
    assert client.get("/api/admin/super").status_code == 403


def test_student_checks_in_once_per_meal(login, repos, student, frozen_clock):
    client = login(student)

    first = client.post("/api/checkin")
    assert first.status_code == 200
    assert first.get_json()["mealType"] == "lunch"
    assert first.get_json()["date"] == "2026-03-04"

    again = client.post("/api/checkin").get_json()
    assert again["alreadyCheckedIn"] is True
    assert len(repos.checkins.rows) == 1


def test_admin_cannot_check_in(login, admin):
    response = login(admin).post("/api/checkin")

    assert response.status_code == 403
    assert response.get_json()["error"] == "Only students can check in for meals"


def test_review_submission(login, student, frozen_clock):
    client = login(student)

    created = client.post("/api/reviews", json={"mealType": "lunch", "rating": 4, "reviewText": "Tasty rasam"})
    assert created.status_code == 201
    assert created.get_json()["review"]["rating"] == 4

    duplicate = client.post("/api/reviews", json={"mealType": "lunch", "rating": 2})
    assert duplicate.status_code == 409

    invalid = client.post("/api/reviews", json={"mealType": "lunch", "rating": "5"})
    assert invalid.status_code == 400


def test_export_download(login, repos, admin, student, frozen_clock):
    repos.reviews.create(
        user_id=student.id, day=date(2026, 3, 4), meal_type=MealType.LUNCH, rating=3, review_text="Okay",
        sentiment=Sentiment.NEUTRAL, anonymous=False, created_at=datetime(2026, 3, 4, 13, 0),
    )

    response = login(admin).get("/api/admin/export?type=reviews")

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/csv; charset=utf-8"
    assert response.headers["Content-Disposition"] =='attachment; filename="reviews-export-2026-03-04.csv"'
    assert response.headers["Cache-Control"] == "no-store"
    assert response.data.startswith(b"\xef\xbb\xbf")


def test_export_errors_are_json(login, admin):
    response = login(admin).get("/api/admin/export?type=users")

    assert response.status_code == 403
    assert response.get_json()["error"] == "Only super_admin can export user data"


def test_notifications_round_trip(login, repos, frozen_clock):
    newbie = repos.users.add("11245310", name="Lakshmi P", created_at=datetime(2026, 3, 2, 8, 0))
    client = login(newbie)

    feed = client.get("/api/notifications").get_json()["notifications"]
    assert [n["id"] for n in feed] == [f"welcome-{newbie.id}"]
    assert feed[0]["read"] is False

    marked = client.post("/api/notifications", json={"notificationIds": [feed[0]["id"]]})
    assert marked.get_json() == {"success": True, "marked": 1}
    assert client.get("/api/notifications").get_json()["notifications"][0]["read"] is True

    assert client.post("/api/notifications", json={}).status_code == 400


def test_super_admin_console(login, super_admin, admin):
    client = login(super_admin)

    overview = client.get("/api/admin/super").get_json()
    assert {a["registerId"] for a in overview["admins"]} == {"SUPERADMIN", "ADMINAH"}

    created = client.post("/api/admin/super", json={"action": "add_block", "name": "Sri Meenakshi Hostel"})
    assert created.status_code == 200
    assert created.get_json()["name"] == "SRI MEENAKSHI HOSTEL"
