from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: an account (student, admin or super admin)."""

    id: int
    register_id: str
    name: str
    email: Optional[str]
    password_hash: str
    role: Role
    hostel_block: Optional[str]
    department: Optional[str]
    year: Optional[str]
    deactivated: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "registerId": self.register_id,
            "email": self.email or None,
            "role": self.role.value,
            "hostelBlock": self.hostel_block or None,
            "department": self.department or None,
            "year": self.year or None,
        }

    def to_admin_row(self) -> dict:
        row = self.to_public()
        row["deactivated"] = self.deactivated
        row["createdAt"] = isoformat(self.created_at)
        return row


@dataclass(frozen=True)
class StudentRecord:
    """Roster row imported from the university XLSX."""

    register_id: str
    name: str
    department: Optional[str] = None
    year: Optional[str] = None
    hostel_block: Optional[str] = None
    room_no: Optional[str] = None


@dataclass(frozen=True)
class PasswordReset:
    id: int
    register_id: str
    email: str
    otp_hash: str
    expires_at: datetime
