from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import PasswordReset, Profile, StudentRecord


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_register_id(self, register_id: str) -> Optional[Profile]:
        """Case-insensitive lookup."""

        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_many(self, user_ids: Iterable[int]) -> dict[int, Profile]:
        raise NotImplementedError

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
        """Raises DuplicateEntryError when register_id/email is taken."""

        raise NotImplementedError

    def update_password(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def update_fields(self, user_id: int, *, fields: dict) -> bool:
        """Update a whitelisted subset of columns (name, year)."""

        raise NotImplementedError

    def set_deactivated(self, user_id: int, deactivated: bool) -> bool:
        raise NotImplementedError

    def set_role(self, user_id: int, role: Role) -> bool:
        raise NotImplementedError

    def delete(self, user_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_staff(self) -> Sequence[Profile]:
        raise NotImplementedError

    def list_students(self, *, hostel_block: Optional[str] = None) -> Sequence[Profile]:
        raise NotImplementedError


class StudentRecordRepository(Protocol):
    def get(self, register_id: str) -> Optional[StudentRecord]:
        raise NotImplementedError

    def upsert_many(self, records: Sequence[StudentRecord]) -> int:
        raise NotImplementedError

    def counts_by_block(self) -> dict[str, int]:
        raise NotImplementedError


class PasswordResetRepository(Protocol):
    def replace(self, *, register_id: str, email: str, otp_hash: str, expires_at: datetime) -> None:
        """Drop any previous OTP for the account and store the new one."""

        raise NotImplementedError

    def find(self, *, otp_hash: str, register_id: Optional[str] = None, email: Optional[str] = None) -> Optional[PasswordReset]:
        raise NotImplementedError

    def delete(self, reset_id: int) -> None:
        raise NotImplementedError
