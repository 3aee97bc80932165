from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, iter_chunks
from .model import StudentRecord
from .repository import StudentRecordRepository

BATCH_SIZE = 500


class MySQLStudentRecordRepository(StudentRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, register_id: str) -> Optional[StudentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT register_id, name, department, year, hostel_block, room_no
                FROM student_records
                WHERE register_id=%s
                """,
                (register_id.strip().upper(),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return StudentRecord(
                register_id=r["register_id"],
                name=r["name"],
                department=r.get("department"),
                year=r.get("year"),
                hostel_block=r.get("hostel_block"),
                room_no=r.get("room_no"),
            )

    def upsert_many(self, records: Sequence[StudentRecord]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for batch in iter_chunks(records, BATCH_SIZE):
                cur.executemany(
                    """
                    INSERT INTO student_records (register_id, name, department, year, hostel_block, room_no)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON DUPLICATE KEY UPDATE
                        name=VALUES(name), department=VALUES(department), year=VALUES(year),
                        hostel_block=VALUES(hostel_block), room_no=VALUES(room_no)
                    """,
                    [(r.register_id, r.name, r.department, r.year, r.hostel_block, r.room_no) for r in batch],
                )
        return len(records)

    def counts_by_block(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(hostel_block, 'Unassigned') AS block, COUNT(*) AS total
                FROM student_records
                GROUP BY COALESCE(hostel_block, 'Unassigned')
                """
            )
            return {r["block"]: int(r["total"]) for r in fetchall(cur)}
