from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional, Sequence

from ..core.enums import ComplaintCategory, ComplaintStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Complaint
from .repository import ComplaintRepository

_COLUMNS = (
    "id, user_id, hostel_block, complaint_text, category, status, priority, escalated, "
    "admin_reply, replied_by, replied_at, created_at"
)


def _to_complaint(r: Dict[str, Any]) -> Complaint:
    return Complaint(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        hostel_block=r["hostel_block"],
        complaint_text=r["complaint_text"],
        category=ComplaintCategory(r["category"]),
        status=ComplaintStatus(r["status"]),
        created_at=r["created_at"],
        priority=r.get("priority") or "normal",
        escalated=as_bool(r.get("escalated")),
        admin_reply=r.get("admin_reply"),
        replied_by=int(r["replied_by"]) if r.get("replied_by") is not None else None,
        replied_at=r.get("replied_at"),
    )


class MySQLComplaintRepository(ComplaintRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        hostel_block: str,
        complaint_text: str,
        category: ComplaintCategory,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO complaints (user_id, hostel_block, complaint_text, category, status, priority, created_at)
                VALUES (%s, %s, %s, %s, 'pending', 'normal', %s)
                """,
                (int(user_id), hostel_block, complaint_text, category.value, created_at),
            )
            return int(cur.lastrowid)

    def get(self, complaint_id: int) -> Optional[Complaint]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM complaints WHERE id=%s", (int(complaint_id),))
            r = fetchone(cur)
            return _to_complaint(r) if r else None

    def update(
        self,
        complaint_id: int,
        *,
        status: Optional[ComplaintStatus] = None,
        reply: Optional[str] = None,
        replied_by: Optional[int] = None,
        replied_at: Optional[datetime] = None,
    ) -> bool:
        assignments: list[str] = []
        params: list[object] = []
        if status is not None:
            assignments.append("status=%s")
            params.append(status.value)
        if reply is not None:
            assignments.extend(["admin_reply=%s", "replied_by=%s", "replied_at=%s"])
            params.extend([reply, replied_by, replied_at])
        if not assignments:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE complaints SET {', '.join(assignments)} WHERE id=%s",
                (*params, int(complaint_id)),
            )
            return cur.rowcount > 0

    def search(
        self,
        *,
        user_id: Optional[int] = None,
        hostel_block: Optional[str] = None,
        status: Optional[ComplaintStatus] = None,
        category: Optional[ComplaintCategory] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[Sequence[Complaint], int]:
        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if hostel_block:
            clauses.append("hostel_block=%s")
            params.append(hostel_block)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if category is not None:
            clauses.append("category=%s")
            params.append(category.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM complaints WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM complaints
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [_to_complaint(r) for r in fetchall(cur)], total

    def list_between(self, start: date, end: date, *, hostel_block: Optional[str] = None) -> Sequence[Complaint]:
        sql = f"SELECT {_COLUMNS} FROM complaints WHERE created_at >= %s AND created_at < %s"
        params: list[object] = [datetime.combine(start, time.min), datetime.combine(end + timedelta(days=1), time.min)]
        if hostel_block:
            sql += " AND hostel_block=%s"
            params.append(hostel_block)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at ASC, id ASC", tuple(params))
            return [_to_complaint(r) for r in fetchall(cur)]

    def list_replied_since(self, user_id: int, since: datetime, *, limit: int = 5) -> Sequence[Complaint]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM complaints
                WHERE user_id=%s AND admin_reply IS NOT NULL AND replied_at >= %s
                ORDER BY replied_at DESC
                LIMIT %s
                """,
                (int(user_id), since, int(limit)),
            )
            return [_to_complaint(r) for r in fetchall(cur)]
