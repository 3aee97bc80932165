from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import PasswordReset
from .repository import PasswordResetRepository


class MySQLPasswordResetRepository(PasswordResetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def replace(self, *, register_id: str, email: str, otp_hash: str, expires_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM password_resets WHERE register_id=%s", (register_id,))
            cur.execute(
                """
                INSERT INTO password_resets (register_id, email, otp_hash, expires_at)
                VALUES (%s, %s, %s, %s)
                """,
                (register_id, email, otp_hash, expires_at),
            )

    def find(self, *, otp_hash: str, register_id: Optional[str] = None, email: Optional[str] = None) -> Optional[PasswordReset]:
        if register_id:
            where, key = "register_id=%s", register_id
        else:
            where, key = "LOWER(email)=%s", (email or "").lower()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, register_id, email, otp_hash, expires_at
                FROM password_resets
                WHERE otp_hash=%s AND {where}
                LIMIT 1
                """,
                (otp_hash, key),
            )
            r = fetchone(cur)
            if not r:
                return None
            return PasswordReset(
                id=int(r["id"]),
                register_id=r["register_id"],
                email=r["email"],
                otp_hash=r["otp_hash"],
                expires_at=r["expires_at"],
            )

    def delete(self, reset_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM password_resets WHERE id=%s", (int(reset_id),))
