from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import isoformat


@dataclass
class Notification:
    """A derived notice; only the read flag is persisted."""

    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": isoformat(self.timestamp),
            "read": self.read,
        }
