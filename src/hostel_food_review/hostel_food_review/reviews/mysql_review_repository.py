from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import MealType, Sentiment
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Review
from .repository import ReviewRepository

_COLUMNS = (
    "r.id, r.user_id, r.date, r.meal_type, r.rating, r.review_text, r.sentiment, r.anonymous, "
    "r.admin_reply, r.admin_reply_by, r.admin_replied_at, r.created_at, p.hostel_block AS reviewer_block"
)
_FROM = "FROM reviews r LEFT JOIN profiles p ON p.id = r.user_id"


def _to_review(r: Dict[str, Any]) -> Review:
    return Review(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        date=r["date"],
        meal_type=MealType(r["meal_type"]),
        rating=int(r["rating"]),
        review_text=r.get("review_text"),
        sentiment=Sentiment(r.get("sentiment") or Sentiment.NEUTRAL.value),
        anonymous=as_bool(r.get("anonymous")),
        created_at=r["created_at"],
        admin_reply=r.get("admin_reply"),
        admin_reply_by=int(r["admin_reply_by"]) if r.get("admin_reply_by") is not None else None,
        admin_replied_at=r.get("admin_replied_at"),
        reviewer_block=r.get("reviewer_block"),
    )


class MySQLReviewRepository(ReviewRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO reviews (user_id, date, meal_type, rating, review_text, sentiment, anonymous, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), day, meal_type.value, int(rating), review_text, sentiment.value, 1 if anonymous else 0, created_at),
            )
            return int(cur.lastrowid)

    def get(self, review_id: int) -> Optional[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} {_FROM} WHERE r.id=%s", (int(review_id),))
            r = fetchone(cur)
            return _to_review(r) if r else None

    def update(self, review_id: int, *, rating: int, review_text: Optional[str], sentiment: Sentiment) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE reviews SET rating=%s, review_text=%s, sentiment=%s WHERE id=%s",
                (int(rating), review_text, sentiment.value, int(review_id)),
            )
            return cur.rowcount > 0

    def delete(self, review_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM reviews WHERE id=%s", (int(review_id),))
            return cur.rowcount > 0

    def set_reply(self, review_id: int, *, reply: str, replied_by: int, replied_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE reviews SET admin_reply=%s, admin_reply_by=%s, admin_replied_at=%s WHERE id=%s",
                (reply, int(replied_by), replied_at, int(review_id)),
            )
            return cur.rowcount > 0

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
        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("r.user_id=%s")
            params.append(int(user_id))
        if hostel_block:
            clauses.append("p.hostel_block=%s AND p.role='student'")
            params.append(hostel_block)
        if day is not None:
            clauses.append("r.date=%s")
            params.append(day)
        if meal_type is not None:
            clauses.append("r.meal_type=%s")
            params.append(meal_type.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total {_FROM} WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"SELECT {_COLUMNS} {_FROM} WHERE {where} ORDER BY r.created_at DESC, r.id DESC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_to_review(r) for r in fetchall(cur)], total

    def list_between(
        self,
        start: date,
        end: date,
        *,
        meal_type: Optional[MealType] = None,
        hostel_block: Optional[str] = None,
    ) -> Sequence[Review]:
        clauses = ["r.date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if meal_type is not None:
            clauses.append("r.meal_type=%s")
            params.append(meal_type.value)
        if hostel_block:
            clauses.append("p.hostel_block=%s AND p.role='student'")
            params.append(hostel_block)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} {_FROM} WHERE {' AND '.join(clauses)} ORDER BY r.date ASC, r.created_at ASC",
                tuple(params),
            )
            return [_to_review(r) for r in fetchall(cur)]

    def list_replied_since(self, user_id: int, since: datetime, *, limit: int = 5) -> Sequence[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} {_FROM}
                WHERE r.user_id=%s AND r.admin_reply IS NOT NULL AND r.admin_replied_at >= %s
                ORDER BY r.admin_replied_at DESC
                LIMIT %s
                """,
                (int(user_id), since, int(limit)),
            )
            return [_to_review(r) for r in fetchall(cur)]
