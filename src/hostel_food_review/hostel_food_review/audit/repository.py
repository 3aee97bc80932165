from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AuditLog


class AuditLogRepository(Protocol):
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
        raise NotImplementedError

    def list_logs(
        self,
        *,
        action: Optional[str] = None,
        actor_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        raise NotImplementedError
