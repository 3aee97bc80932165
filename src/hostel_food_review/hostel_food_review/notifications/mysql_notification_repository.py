from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .repository import NotificationReadRepository


class MySQLNotificationReadRepository(NotificationReadRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def read_ids(self, user_id: int, notification_ids: Sequence[str]) -> set[str]:
        ids = list(notification_ids)
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT notification_id FROM notification_reads WHERE user_id=%s AND notification_id IN ({in_clause(ids)})",
                (int(user_id), *ids),
            )
            return {r["notification_id"] for r in fetchall(cur)}

    def mark_read(self, user_id: int, notification_ids: Sequence[str]) -> int:
        rows = [(int(user_id), nid) for nid in notification_ids]
        if not rows:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO notification_reads (user_id, notification_id) VALUES (%s, %s)",
                rows,
            )
            return len(rows)
