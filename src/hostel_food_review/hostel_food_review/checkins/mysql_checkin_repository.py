from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import MealType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import MealCheckin
from .repository import CheckinRepository

_COLUMNS = "id, user_id, meal_type, date, hostel_block, checked_in_at"


def _to_checkin(r: Dict[str, Any]) -> MealCheckin:
    return MealCheckin(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        meal_type=MealType(r["meal_type"]),
        date=r["date"],
        hostel_block=r.get("hostel_block"),
        checked_in_at=r["checked_in_at"],
    )


class MySQLCheckinRepository(CheckinRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        meal_type: MealType,
        date: date,
        hostel_block: Optional[str],
        checked_in_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO meal_checkins (user_id, meal_type, date, hostel_block, checked_in_at)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(user_id), meal_type.value, date, hostel_block, checked_in_at),
            )
            return int(cur.lastrowid)

    def get(self, *, user_id: int, meal_type: MealType, date: date) -> Optional[MealCheckin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM meal_checkins WHERE user_id=%s AND meal_type=%s AND date=%s",
                (int(user_id), meal_type.value, date),
            )
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_id: Optional[int] = None,
        hostel_block: Optional[str] = None,
        meal_type: Optional[MealType] = None,
    ) -> Sequence[MealCheckin]:
        clauses = ["date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if hostel_block:
            clauses.append("hostel_block=%s")
            params.append(hostel_block)
        if meal_type is not None:
            clauses.append("meal_type=%s")
            params.append(meal_type.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM meal_checkins
                WHERE {' AND '.join(clauses)}
                ORDER BY date ASC, checked_in_at ASC
                """,
                tuple(params),
            )
            return [_to_checkin(r) for r in fetchall(cur)]
