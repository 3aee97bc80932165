from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import ComplaintCategory, ComplaintStatus


@dataclass(frozen=True)
class Complaint:
    id: int
    user_id: int
    hostel_block: str
    complaint_text: str
    category: ComplaintCategory
    status: ComplaintStatus
    created_at: datetime
    priority: str = "normal"
    escalated: bool = False
    admin_reply: Optional[str] = None
    replied_by: Optional[int] = None
    replied_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "hostelBlock": self.hostel_block,
            "complaintText": self.complaint_text,
            "category": self.category.value,
            "status": self.status.value,
            "priority": self.priority,
            "escalated": self.escalated,
            "adminReply": self.admin_reply,
            "repliedAt": isoformat(self.replied_at),
            "createdAt": isoformat(self.created_at),
        }
