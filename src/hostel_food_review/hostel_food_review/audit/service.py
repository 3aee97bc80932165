from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import now_local, to_db
from ..common.pagination import PageRequest
from ..users.model import Profile
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Use case: record and browse admin actions."""

    def __init__(self, logs: AuditLogRepository):
        self._logs = logs

    def log_event(
        self,
        actor: Profile,
        action: str,
        target_type: str,
        target_id: Any = None,
        *,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
        now: datetime | None = None,
    ) -> None:
        """Fire-and-forget: a failed audit write must never break the caller."""
        try:
            self._logs.insert(
                actor_id=actor.id,
                actor_email=actor.email,
                actor_role=actor.role.value,
                action=action,
                target_type=target_type,
                target_id=str(target_id) if target_id is not None else None,
                details=details or {},
                ip_address=ip_address,
                created_at=to_db(now or now_local()),
            )
        except Exception:
            logger.exception("Audit log write failed for action=%s target=%s:%s", action, target_type, target_id)

    def list_logs(self, *, page: PageRequest, action: Optional[str] = None, actor_id: Optional[int] = None) -> dict:
        logs, total = self._logs.list_logs(
            action=action or None,
            actor_id=actor_id,
            offset=page.offset,
            limit=page.page_size,
        )
        return {
            "logs": [log.to_dict() for log in logs],
            "total": total,
            "page": page.page,
            "pageSize": page.page_size,
        }
