"""CSV exports of reviews, complaints, attendance and accounts."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..checkins.repository import CheckinRepository
from ..common.datetime_utils import now_local, parse_iso_date, to_local
from ..complaints.repository import ComplaintRepository
from ..core.constants import DEFAULT_EXPORT_DAYS
from ..core.enums import ExportType, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..reviews.repository import ReviewRepository
from ..users.model import Profile
from ..users.repository import UserRepository
from ..users.scope import scoped_block

logger = logging.getLogger(__name__)

MAX_EXPORT_USERS = 10000

REVIEW_HEADER = [
    "Date", "Meal Type", "Rating", "Review", "Sentiment", "Student Name",
    "Register ID", "Hostel Block", "Admin Reply", "Created At",
]
COMPLAINT_HEADER = [
    "Date", "Student Name", "Register ID", "Hostel Block", "Category", "Priority",
    "Complaint", "Status", "Escalated", "Admin Reply", "Replied At",
]
ATTENDANCE_HEADER = ["Date", "Meal Type", "Student Name", "Register ID", "Hostel Block", "Checked In At"]
USER_HEADER = ["Register ID", "Name", "Email", "Role", "Hostel Block", "Department", "Year", "Status", "Joined"]


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: bytes


def _fmt_dt(value: Optional[datetime]) -> str:
    return to_local(value).strftime("%Y-%m-%d %H:%M") if value else ""


def render_csv(header: Sequence[str], rows: Iterable[Sequence[object]]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    # BOM so spreadsheet apps detect UTF-8
    return buf.getvalue().encode("utf-8-sig")


class ExportService:
    def __init__(
        self,
        reviews: ReviewRepository,
        complaints: ComplaintRepository,
        checkins: CheckinRepository,
        users: UserRepository,
    ):
        self._reviews = reviews
        self._complaints = complaints
        self._checkins = checkins
        self._users = users

    def export(
        self,
        actor: Profile,
        *,
        export_type: Optional[str],
        fmt: Optional[str] = "csv",
        start: Optional[str] = None,
        end: Optional[str] = None,
        hostel_block: Optional[str] = None,
        now: datetime | None = None,
    ) -> CsvExport:
        if (fmt or "csv") != "csv":
            raise ValidationError("Only CSV format is currently supported")
        try:
            kind = ExportType(export_type)
        except ValueError:
            raise ValidationError("Invalid export type. Use: reviews, complaints, attendance, users")
        if kind == ExportType.USERS and actor.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only super_admin can export user data")

        today = to_local(now or now_local()).date()
        end_date = parse_iso_date(end, "endDate") if end else today
        start_date = parse_iso_date(start, "startDate") if start else end_date - timedelta(days=DEFAULT_EXPORT_DAYS)
        if start_date > end_date:
            raise ValidationError("startDate must be on or before endDate")

        block = scoped_block(actor, hostel_block)
        builders = {
            ExportType.REVIEWS: (REVIEW_HEADER, self._review_rows),
            ExportType.COMPLAINTS: (COMPLAINT_HEADER, self._complaint_rows),
            ExportType.ATTENDANCE: (ATTENDANCE_HEADER, self._attendance_rows),
            ExportType.USERS: (USER_HEADER, self._user_rows),
        }
        header, build = builders[kind]
        rows = build(start_date, end_date, block)
        logger.info("Export %s by %s (%s..%s, block=%s, rows=%d)", kind.value, actor.register_id, start_date, end_date, block, len(rows))
        return CsvExport(filename=f"{kind.value}-export-{today.isoformat()}.csv", content=render_csv(header, rows))

    def _review_rows(self, start: date, end: date, block: Optional[str]) -> list[list]:
        reviews = sorted(
            self._reviews.list_between(start, end, hostel_block=block),
            key=lambda r: r.created_at,
            reverse=True,
        )
        profiles = self._users.get_many(r.user_id for r in reviews)
        rows = []
        for r in reviews:
            p = profiles.get(r.user_id)
            rows.append(
                [
                    r.date.isoformat(),
                    r.meal_type.value,
                    r.rating,
                    r.review_text or "",
                    r.sentiment.value,
                    "Anonymous" if r.anonymous or not p else p.name,
                    "Anonymous" if r.anonymous else (p.register_id if p else ""),
                    (p.hostel_block if p else r.reviewer_block) or "",
                    r.admin_reply or "",
                    _fmt_dt(r.created_at),
                ]
            )
        return rows

    def _complaint_rows(self, start: date, end: date, block: Optional[str]) -> list[list]:
        complaints = sorted(
            self._complaints.list_between(start, end, hostel_block=block),
            key=lambda c: c.created_at,
            reverse=True,
        )
        profiles = self._users.get_many(c.user_id for c in complaints)
        rows = []
        for c in complaints:
            p = profiles.get(c.user_id)
            rows.append(
                [
                    to_local(c.created_at).date().isoformat(),
                    p.name if p else "Unknown",
                    p.register_id if p else "",
                    c.hostel_block,
                    c.category.value,
                    c.priority,
                    c.complaint_text,
                    c.status.value,
                    "Yes" if c.escalated else "No",
                    c.admin_reply or "",
                    _fmt_dt(c.replied_at),
                ]
            )
        return rows

    def _attendance_rows(self, start: date, end: date, block: Optional[str]) -> list[list]:
        checkins = sorted(
            self._checkins.list_between(start, end, hostel_block=block),
            key=lambda c: c.checked_in_at,
            reverse=True,
        )
        profiles = self._users.get_many(c.user_id for c in checkins)
        rows = []
        for c in checkins:
            p = profiles.get(c.user_id)
            rows.append(
                [
                    c.date.isoformat(),
                    c.meal_type.value,
                    p.name if p else "Unknown",
                    p.register_id if p else "",
                    c.hostel_block or "",
                    _fmt_dt(c.checked_in_at),
                ]
            )
        return rows

    def _user_rows(self, start: date, end: date, block: Optional[str]) -> list[list]:
        # Accounts are not date-bounded; the range only applies to activity exports
        users, _ = self._users.search(hostel_block=block, offset=0, limit=MAX_EXPORT_USERS)
        return [
            [
                u.register_id,
                u.name,
                u.email or "",
                u.role.value,
                u.hostel_block or "",
                u.department or "",
                u.year or "",
                "Deactivated" if u.deactivated else "Active",
                to_local(u.created_at).date().isoformat() if u.created_at else "",
            ]
            for u in users
        ]
