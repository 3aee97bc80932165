from __future__ import annotations

import csv
import io
from datetime import date, datetime

import pytest

from src.hostel_food_review.hostel_food_review.core.enums import ComplaintCategory, MealType, Sentiment
from src.hostel_food_review.hostel_food_review.core.exceptions import AuthorizationError, ValidationError
from src.hostel_food_review.hostel_food_review.exports.service import (
    ATTENDANCE_HEADER,
    COMPLAINT_HEADER,
    REVIEW_HEADER,
    USER_HEADER,
    ExportService,
)

BLOCK_V = "Visalakshi Hostel"


@pytest.fixture
def svc(repos):
    return ExportService(repos.reviews, repos.complaints, repos.checkins, repos.users)


@pytest.fixture
def seeded(repos, student):
    other = repos.users.add("11245202", name="Bhavani K", hostel_block=BLOCK_V)
    repos.reviews.create(
        user_id=student.id, day=date(2026, 3, 3), meal_type=MealType.DINNER, rating=2,
        review_text="Rice was cold", sentiment=Sentiment.NEGATIVE, anonymous=True,
        created_at=datetime(2026, 3, 3, 20, 15),
    )
    repos.reviews.create(
        user_id=other.id, day=date(2026, 3, 4), meal_type=MealType.LUNCH, rating=5,
        review_text="Great sambar", sentiment=Sentiment.POSITIVE, anonymous=False,
        created_at=datetime(2026, 3, 4, 13, 5),
    )
    repos.reviews.create(
        user_id=student.id, day=date(2026, 1, 15), meal_type=MealType.LUNCH, rating=4,
        review_text=None, sentiment=Sentiment.POSITIVE, anonymous=False,
        created_at=datetime(2026, 1, 15, 13, 0),
    )
    return other


def _rows(export):
    return list(csv.reader(io.StringIO(export.content.decode("utf-8-sig"))))


def test_review_export_is_csv_with_bom(svc, super_admin, seeded, fixed_now):
    export = svc.export(super_admin, export_type="reviews", now=fixed_now)

    assert export.filename == "reviews-export-2026-03-04.csv"
    assert export.content.startswith(b"\xef\xbb\xbf")
    rows = _rows(export)
    assert rows[0] == REVIEW_HEADER
    # newest first; the January review is outside the default 30 day window
    assert [r[0] for r in rows[1:]] == ["2026-03-04", "2026-03-03"]
    assert rows[1][5:8] == ["Bhavani K", "11245202", BLOCK_V]
    assert rows[2][5:7] == ["Anonymous", "Anonymous"]
    assert rows[2][9] == "2026-03-03 20:15"


def test_admin_export_is_block_scoped(svc, admin, seeded, fixed_now):
    rows = _rows(svc.export(admin, export_type="reviews", hostel_block=BLOCK_V, now=fixed_now))
    assert [r[1] for r in rows[1:]] == ["dinner"]


def test_explicit_range(svc, super_admin, seeded, fixed_now):
    rows = _rows(svc.export(super_admin, export_type="reviews", start="2026-01-01", end="2026-01-31", now=fixed_now))
    assert len(rows) == 2
    assert rows[1][3] == ""


def test_complaint_and_attendance_exports(svc, repos, super_admin, student, fixed_now):
    repos.complaints.create(
        user_id=student.id, hostel_block="Annapoorani Hostel", complaint_text="Hair in the curry",
        category=ComplaintCategory.HYGIENE, created_at=datetime(2026, 3, 2, 9, 0),
    )
    repos.checkins.create(
        user_id=student.id, meal_type=MealType.LUNCH, date=date(2026, 3, 4),
        hostel_block="Annapoorani Hostel", checked_in_at=datetime(2026, 3, 4, 12, 40),
    )

    complaints = _rows(svc.export(super_admin, export_type="complaints", now=fixed_now))
    assert complaints[0] == COMPLAINT_HEADER
    assert complaints[1] == [
        "2026-03-02", "Anitha R", "11245101", "Annapoorani Hostel", "hygiene", "normal",
        "Hair in the curry", "pending", "No", "", "",
    ]

    attendance = _rows(svc.export(super_admin, export_type="attendance", now=fixed_now))
    assert attendance[0] == ATTENDANCE_HEADER
    assert attendance[1] == ["2026-03-04", "lunch", "Anitha R", "11245101", "Annapoorani Hostel", "2026-03-04 12:40"]


def test_user_export_is_super_admin_only(svc, repos, admin, super_admin, student, fixed_now):
    repos.users.add("11245203", name="Gone", deactivated=True)

    with pytest.raises(AuthorizationError, match="super_admin"):
        svc.export(admin, export_type="users", now=fixed_now)

    export = svc.export(super_admin, export_type="users", now=fixed_now)
    rows = _rows(export)
    assert export.filename == "users-export-2026-03-04.csv"
    assert rows[0] == USER_HEADER
    assert len(rows) == 1 + 4
    statuses = {r[0]: r[7] for r in rows[1:]}
    assert statuses["11245203"] == "Deactivated"
    assert statuses["11245101"] == "Active"


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"export_type": "reviews", "fmt": "xlsx"}, "Only CSV"),
        ({"export_type": "menus"}, "Invalid export type"),
        ({"export_type": None}, "Invalid export type"),
        ({"export_type": "reviews", "start": "2026-03-05", "end": "2026-03-01"}, "on or before"),
        ({"export_type": "reviews", "start": "03/01/2026"}, "startDate"),
    ],
)
def test_export_validation(svc, super_admin, fixed_now, kwargs, message):
    with pytest.raises(ValidationError, match=message):
        svc.export(super_admin, now=fixed_now, **kwargs)
