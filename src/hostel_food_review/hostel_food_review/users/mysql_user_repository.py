from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from .model import Profile
from .repository import UserRepository

_COLUMNS = "id, register_id, name, email, password_hash, role, hostel_block, department, year, deactivated, created_at"

_UPDATABLE = {"name", "year"}


def _to_profile(r: Dict[str, Any]) -> Profile:
    return Profile(
        id=int(r["id"]),
        register_id=r["register_id"],
        name=r["name"],
        email=r.get("email"),
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        hostel_block=r.get("hostel_block"),
        department=r.get("department"),
        year=r.get("year"),
        deactivated=as_bool(r.get("deactivated")),
        created_at=r.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return _to_profile(r) if r else None

    def get_by_id(self, user_id: int) -> Optional[Profile]:
        return self._get_one("id=%s", (int(user_id),))

    def get_by_register_id(self, register_id: str) -> Optional[Profile]:
        return self._get_one("UPPER(register_id)=%s", (register_id.strip().upper(),))

    def get_by_email(self, email: str) -> Optional[Profile]:
        return self._get_one("LOWER(email)=%s", (email.strip().lower(),))

    def get_many(self, user_ids: Iterable[int]) -> dict[int, Profile]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE id IN ({in_clause(ids)})", tuple(ids))
            return {int(r["id"]): _to_profile(r) for r in fetchall(cur)}

    def create_profile(
        self,
        *,
        register_id: str,
        name: str,
        email: Optional[str],
        password_hash: str,
        role: Role,
        hostel_block: Optional[str],
        department: Optional[str],
        year: Optional[str],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles (register_id, name, email, password_hash, role, hostel_block, department, year, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (register_id, name, email, password_hash, role.value, hostel_block, department, year, created_at),
            )
            return int(cur.lastrowid)

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET password_hash=%s WHERE id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def update_fields(self, user_id: int, *, fields: dict) -> bool:
        updates = {k: v for k, v in fields.items() if k in _UPDATABLE}
        if not updates:
            return False
        assignments = ", ".join(f"{col}=%s" for col in updates)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE profiles SET {assignments} WHERE id=%s", (*updates.values(), int(user_id)))
            return cur.rowcount > 0

    def set_deactivated(self, user_id: int, deactivated: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET deactivated=%s WHERE id=%s", (1 if deactivated else 0, int(user_id)))
            return cur.rowcount > 0

    def set_role(self, user_id: int, role: Role) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET role=%s WHERE id=%s", (role.value, int(user_id)))
            return cur.rowcount > 0

    def delete(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM profiles WHERE id=%s", (int(user_id),))
            return cur.rowcount > 0

    def search(
        self,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        hostel_block: Optional[str] = None,
        year: Optional[str] = None,
        deactivated: Optional[bool] = None,
        offset: int = 0,
        limit: int = 25,
    ) -> tuple[Sequence[Profile], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if search:
            like = f"%{search}%"
            clauses.append("(name LIKE %s OR register_id LIKE %s OR email LIKE %s)")
            params.extend([like, like, like])
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if hostel_block:
            clauses.append("hostel_block=%s")
            params.append(hostel_block)
        if year:
            clauses.append("year=%s")
            params.append(year)
        if deactivated is not None:
            clauses.append("deactivated=%s")
            params.append(1 if deactivated else 0)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM profiles WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM profiles
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [_to_profile(r) for r in fetchall(cur)], total

    def list_staff(self) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM profiles
                WHERE role IN ('admin', 'super_admin')
                ORDER BY created_at DESC, id DESC
                """
            )
            return [_to_profile(r) for r in fetchall(cur)]

    def list_students(self, *, hostel_block: Optional[str] = None) -> Sequence[Profile]:
        sql = f"SELECT {_COLUMNS} FROM profiles WHERE role='student' AND deactivated=0"
        params: tuple = ()
        if hostel_block:
            sql += " AND hostel_block=%s"
            params = (hostel_block,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY name ASC", params)
            return [_to_profile(r) for r in fetchall(cur)]
