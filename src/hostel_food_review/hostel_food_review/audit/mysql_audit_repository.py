from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import AuditLog
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(
        self,
        *,
        actor_id: Optional[int],
        actor_email: Optional[str],
        actor_role: str,
        action: str,
        target_type: str,
        target_id: Optional[str],
        details: dict,
        ip_address: Optional[str],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs
                    (actor_id, actor_email, actor_role, action, target_type, target_id, details, ip_address, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    actor_id,
                    actor_email,
                    actor_role,
                    action,
                    target_type,
                    target_id,
                    json.dumps(details or {}, default=str),
                    ip_address,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_logs(
        self,
        *,
        action: Optional[str] = None,
        actor_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        clauses = ["1=1"]
        params: list[object] = []
        if action:
            clauses.append("action=%s")
            params.append(action)
        if actor_id is not None:
            clauses.append("actor_id=%s")
            params.append(int(actor_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM audit_logs WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT id, actor_id, actor_email, actor_role, action, target_type, target_id, details, ip_address, created_at
                FROM audit_logs
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            logs = [
                AuditLog(
                    id=int(r["id"]),
                    actor_id=r.get("actor_id"),
                    actor_email=r.get("actor_email"),
                    actor_role=r["actor_role"],
                    action=r["action"],
                    target_type=r["target_type"],
                    target_id=r.get("target_id"),
                    details=load_json(r.get("details")) or {},
                    ip_address=r.get("ip_address"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
            return logs, total
