from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import MealType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Menu
from .repository import MenuRepository

_COLUMNS = "id, date, meal_type, items, timing, special_label, hostel_block, updated_at"


def _to_menu(r: Dict[str, Any]) -> Menu:
    return Menu(
        id=int(r["id"]),
        date=r["date"],
        meal_type=MealType(r["meal_type"]),
        items=r["items"],
        timing=r["timing"],
        special_label=r.get("special_label"),
        hostel_block=r.get("hostel_block"),
        updated_at=r.get("updated_at"),
    )


class MySQLMenuRepository(MenuRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_date(self, day: date, *, hostel_block: Optional[str] = None) -> Sequence[Menu]:
        sql = f"SELECT {_COLUMNS} FROM menus WHERE date=%s AND (hostel_block IS NULL"
        params: list[object] = [day]
        if hostel_block:
            sql += " OR hostel_block=%s"
            params.append(hostel_block)
        sql += ") ORDER BY FIELD(meal_type, 'breakfast', 'lunch', 'snacks', 'dinner')"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_menu(r) for r in fetchall(cur)]

    def upsert(
        self,
        *,
        day: date,
        meal_type: MealType,
        items: str,
        timing: str,
        special_label: Optional[str],
        hostel_block: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # LAST_INSERT_ID(id) makes lastrowid report the existing row on update
            cur.execute(
                """
                INSERT INTO menus (date, meal_type, items, timing, special_label, hostel_block)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    id=LAST_INSERT_ID(id), items=VALUES(items), timing=VALUES(timing),
                    special_label=VALUES(special_label)
                """,
                (day, meal_type.value, items, timing, special_label, hostel_block),
            )
            return int(cur.lastrowid)

    def special_labels(self, start: date, end: date) -> dict[date, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT date, special_label
                FROM menus
                WHERE date BETWEEN %s AND %s AND special_label IS NOT NULL AND special_label <> ''
                ORDER BY date ASC, id ASC
                """,
                (start, end),
            )
            labels: dict[date, str] = {}
            for r in fetchall(cur):
                labels.setdefault(r["date"], r["special_label"])
            return labels
