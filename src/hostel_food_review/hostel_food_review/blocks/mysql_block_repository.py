from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import HostelBlock
from .repository import BlockRepository


class MySQLBlockRepository(BlockRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[HostelBlock]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, created_at FROM hostel_blocks ORDER BY name ASC")
            return [
                HostelBlock(id=int(r["id"]), name=r["name"], created_at=r.get("created_at"))
                for r in fetchall(cur)
            ]

    def get_by_id(self, block_id: int) -> Optional[HostelBlock]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, created_at FROM hostel_blocks WHERE id=%s", (int(block_id),))
            r = fetchone(cur)
            return HostelBlock(id=int(r["id"]), name=r["name"], created_at=r.get("created_at")) if r else None

    def get_by_name(self, name: str) -> Optional[HostelBlock]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, created_at FROM hostel_blocks WHERE name=%s", (name,))
            r = fetchone(cur)
            return HostelBlock(id=int(r["id"]), name=r["name"], created_at=r.get("created_at")) if r else None

    def create(self, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO hostel_blocks (name) VALUES (%s)", (name,))
            return int(cur.lastrowid)

    def delete(self, block_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM hostel_blocks WHERE id=%s", (int(block_id),))
            return cur.rowcount > 0
