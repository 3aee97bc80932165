from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat


@dataclass(frozen=True)
class AuditLog:
    id: int
    actor_id: Optional[int]
    actor_email: Optional[str]
    actor_role: str
    action: str
    target_type: str
    target_id: Optional[str]
    details: dict = field(default_factory=dict)
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actorId": self.actor_id,
            "actorEmail": self.actor_email,
            "actorRole": self.actor_role,
            "action": self.action,
            "targetType": self.target_type,
            "targetId": self.target_id,
            "details": self.details,
            "ipAddress": self.ip_address,
            "createdAt": isoformat(self.created_at),
        }
