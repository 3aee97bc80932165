from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional
from zipfile import BadZipFile

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.service import AuditService
from ..blocks.repository import BlockRepository
from ..common.datetime_utils import now_local, to_db, to_local
from ..common.mailer import Mailer
from ..common.pagination import PageRequest
from ..common.validators import (
    optional_enum,
    require_alphanumeric,
    require_enum,
    require_length_between,
    require_min_length,
    require_non_empty,
)
from ..core.constants import ALLOWED_UPLOAD_EXTENSIONS, MAX_UPLOAD_BYTES, OTP_TTL_MINUTES, VALID_YEARS
from ..core.enums import Role, UserAction
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from .model import Profile
from .repository import PasswordResetRepository, StudentRecordRepository, UserRepository
from .roster_import import parse_roster_workbook
from .scope import scoped_block

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
REGISTRATION_FAILED = "Registration failed. Please try again or sign in."


def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode("utf-8")).hexdigest()


def generate_otp() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def _safe_check(password_hash: str, password: str) -> bool:
    # Placeholder or corrupted hashes make werkzeug raise ValueError
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        return False


class AuthService:
    """Use case: sign in, self-registration and password change."""

    def __init__(
        self,
        users: UserRepository,
        roster: StudentRecordRepository,
        blocks: BlockRepository,
        mailer: Optional[Mailer] = None,
        *,
        allowed_email_domain: str = "kanchiuniv.ac.in",
    ):
        self._users = users
        self._roster = roster
        self._blocks = blocks
        self._mailer = mailer
        self._allowed_email_domain = allowed_email_domain.lower()

    def authenticate(self, register_id: str, password: str) -> Profile:
        register_id = str(register_id or "").strip().upper()[:30]
        password = str(password or "")[:128]
        if not register_id or not password:
            raise ValidationError("Register ID and password are required")

        user = self._users.get_by_register_id(register_id)
        if not user or user.deactivated:
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not _safe_check(user.password_hash, password):
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("Login ok for %s (%s)", user.register_id, user.role.value)
        return user

    def register(
        self,
        *,
        register_id: str,
        name: str,
        email: str,
        password: str,
        hostel_block: Optional[str] = None,
        department: Optional[str] = None,
        year: Optional[str] = None,
        now: datetime | None = None,
    ) -> Profile:
        register_id = require_non_empty(register_id, "Register ID").upper()[:30]
        name = require_non_empty(name, "Name")[:100]
        if not password:
            raise ValidationError("Password is required")
        require_min_length(str(password), "Password", 8)
        if len(str(password)) > 128:
            raise ValidationError("Password must be at most 128 characters")

        email = str(email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")
        if not email.endswith(f"@{self._allowed_email_domain}"):
            raise ValidationError(f"Please use your university email (@{self._allowed_email_domain})")

        require_min_length(name, "Name", 2)
        require_alphanumeric(register_id, "Register ID")

        # The university roster is authoritative for identity fields
        record = self._roster.get(register_id)
        if record:
            name = record.name or name
            hostel_block = record.hostel_block or hostel_block
            department = record.department or department
            year = record.year or year

        hostel_block = (hostel_block or "").strip() or None
        if not hostel_block or not self._blocks.get_by_name(hostel_block):
            raise ValidationError("Invalid hostel block")

        try:
            user_id = self._users.create_profile(
                register_id=register_id,
                name=name,
                email=email,
                password_hash=generate_password_hash(str(password)),
                role=Role.STUDENT,
                hostel_block=hostel_block,
                department=(department or "").strip()[:60] or None,
                year=(year or "").strip()[:10] or None,
                created_at=to_db(now or now_local()),
            )
        except DuplicateEntryError:
            raise ConflictError(REGISTRATION_FAILED)

        user = self._users.get_by_id(user_id)
        if not user:
            raise ConflictError(REGISTRATION_FAILED)

        self._send_welcome(user)
        return user

    def _send_welcome(self, user: Profile) -> None:
        if not self._mailer or not user.email:
            return
        try:
            self._mailer.send_welcome(
                to=user.email,
                name=user.name,
                register_id=user.register_id,
                hostel_block=user.hostel_block,
                department=user.department,
                year=user.year,
            )
        except Exception:
            logger.warning("Welcome email to %s failed", user.email, exc_info=True)

    def change_password(self, user: Profile, *, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        new_password = str(new_password)
        if not 6 <= len(new_password) <= 128:
            raise ValidationError("New password must be between 6 and 128 characters")
        if current_password == new_password:
            raise ValidationError("New password must be different from current password")
        if not _safe_check(user.password_hash, str(current_password)):
            raise ValidationError("Current password is incorrect")

        self._users.update_password(user.id, generate_password_hash(new_password))

    def lookup_student(self, register_id: str) -> dict:
        register_id = str(register_id or "").strip().upper()
        if len(register_id) < 5:
            return {"found": False}
        record = self._roster.get(register_id)
        if not record:
            return {"found": False}
        return {
            "found": True,
            "name": record.name,
            "hostelBlock": record.hostel_block,
            "department": record.department,
            "year": record.year,
        }


class PasswordResetService:
    """Use case: e-mailed one-time code to reset a forgotten password."""

    GENERIC_MESSAGE = "If an account exists with that information, a verification code has been sent."

    def __init__(
        self,
        users: UserRepository,
        resets: PasswordResetRepository,
        mailer: Mailer,
        *,
        ttl_minutes: int = OTP_TTL_MINUTES,
    ):
        self._users = users
        self._resets = resets
        self._mailer = mailer
        self._ttl = timedelta(minutes=ttl_minutes)

    def _find_account(self, *, email: Optional[str], register_id: Optional[str]) -> Optional[Profile]:
        if register_id:
            return self._users.get_by_register_id(register_id)
        if email:
            return self._users.get_by_email(email)
        return None

    def request_reset(self, *, email: Optional[str] = None, register_id: Optional[str] = None, now: datetime | None = None) -> str:
        email = str(email or "").strip().lower() or None
        register_id = str(register_id or "").strip().upper() or None
        if not email and not register_id:
            raise ValidationError("Email or Register ID is required")

        user = self._find_account(email=email, register_id=register_id)
        if not user or not user.email or user.deactivated:
            logger.info("Password reset requested for unknown account")
            return self.GENERIC_MESSAGE

        otp = generate_otp()
        expires_at = (now or now_local()) + self._ttl
        self._resets.replace(
            register_id=user.register_id,
            email=user.email,
            otp_hash=hash_otp(otp),
            expires_at=to_db(expires_at),
        )
        self._mailer.send_password_reset_otp(to=user.email, name=user.name, register_id=user.register_id, otp=otp)
        return self.GENERIC_MESSAGE

    def verify_reset(
        self,
        *,
        otp: str,
        new_password: str,
        email: Optional[str] = None,
        register_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> None:
        email = str(email or "").strip().lower() or None
        register_id = str(register_id or "").strip().upper() or None
        otp = str(otp or "").strip()
        if not email and not register_id:
            raise ValidationError("Email or Register ID is required")
        if not otp.isdigit() or not 4 <= len(otp) <= 6:
            raise ValidationError("Invalid verification code")
        if not new_password or not 8 <= len(str(new_password)) <= 128:
            raise ValidationError("Password must be between 8 and 128 characters")

        reset = self._resets.find(otp_hash=hash_otp(otp), register_id=register_id, email=email)
        if not reset:
            raise ValidationError("Invalid verification code")

        if to_local(reset.expires_at) < (now or now_local()):
            self._resets.delete(reset.id)
            raise ValidationError("Verification code has expired. Please request a new one.")

        user = self._users.get_by_register_id(reset.register_id)
        if not user:
            raise ValidationError("Invalid verification code")

        self._users.update_password(user.id, generate_password_hash(str(new_password)))
        self._resets.delete(reset.id)
        logger.info("Password reset completed for %s", user.register_id)


class ProfileService:
    def __init__(self, users: UserRepository, roster: StudentRecordRepository):
        self._users = users
        self._roster = roster

    def update_profile(self, user: Profile, *, name: object = None, year: object = None) -> Profile:
        if not user.is_student:
            raise AuthorizationError("Only students can update their profile")

        fields: dict = {}
        if name is not None:
            if self._roster.get(user.register_id):
                raise AuthorizationError("Name is managed by the university records and cannot be changed")
            name = str(name).strip()
            require_length_between(name, "Name", 2, 100)
            fields["name"] = name
        if year is not None:
            year = str(year).strip()
            if year and year not in VALID_YEARS:
                raise ValidationError("Invalid year")
            fields["year"] = year or None

        if not fields:
            raise ValidationError("No fields to update")

        self._users.update_fields(user.id, fields=fields)
        return self._users.get_by_id(user.id) or user


class UserAdminService:
    """Use case: staff browse accounts and (de)activate or re-role them."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def list_users(
        self,
        actor: Profile,
        *,
        page: PageRequest,
        search: Optional[str] = None,
        role: Optional[str] = None,
        hostel_block: Optional[str] = None,
        year: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict:
        hostel_block = scoped_block(actor, hostel_block)

        deactivated = {"active": False, "deactivated": True}.get(str(status or "").lower())
        users, total = self._users.search(
            search=(search or "").strip()[:100] or None,
            role=optional_enum(Role, role, "Invalid role"),
            hostel_block=hostel_block,
            year=year or None,
            deactivated=deactivated,
            offset=page.offset,
            limit=page.page_size,
        )
        return {
            "users": [u.to_admin_row() for u in users],
            "total": total,
            "page": page.page,
            "pageSize": page.page_size,
        }

    def apply_action(self, actor: Profile, *, user_id: object, action: object, ip_address: Optional[str] = None) -> str:
        if user_id in (None, "") or not action:
            raise ValidationError("userId and action are required")
        try:
            target_id = int(user_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid userId")
        if target_id == actor.id:
            raise ValidationError("You cannot modify your own account")

        user_action = require_enum(UserAction, action, "Invalid action")

        target = self._users.get_by_id(target_id)
        if not target:
            raise NotFoundError("User not found")

        if actor.role == Role.ADMIN:
            if target.role != Role.STUDENT or not actor.hostel_block or target.hostel_block != actor.hostel_block:
                raise AuthorizationError("You can only manage students in your hostel block")

        if user_action == UserAction.DEACTIVATE:
            self._users.set_deactivated(target.id, True)
            message = "User deactivated"
        elif user_action == UserAction.REACTIVATE:
            self._users.set_deactivated(target.id, False)
            message = "User reactivated"
        elif user_action == UserAction.PROMOTE_ADMIN:
            if actor.role != Role.SUPER_ADMIN:
                raise AuthorizationError("Only super admins can promote users")
            if target.role != Role.STUDENT:
                raise ValidationError("Only students can be promoted")
            self._users.set_role(target.id, Role.ADMIN)
            message = "User promoted to admin"
        else:
            if actor.role != Role.SUPER_ADMIN:
                raise AuthorizationError("Only super admins can demote admins")
            if target.role != Role.ADMIN:
                raise ValidationError("Only admins can be demoted")
            self._users.set_role(target.id, Role.STUDENT)
            message = "User demoted to student"

        self._audit.log_event(
            actor,
            f"user_{user_action.value}",
            "profile",
            target.id,
            details={"registerId": target.register_id, "name": target.name},
            ip_address=ip_address,
        )
        return message


class StudentDataService:
    """Use case: super admin imports the university roster workbook."""

    def __init__(self, roster: StudentRecordRepository, audit: AuditService):
        self._roster = roster
        self._audit = audit

    def info(self) -> dict:
        by_block = self._roster.counts_by_block()
        return {"totalRecords": sum(by_block.values()), "byBlock": by_block}

    def import_workbook(self, actor: Profile, *, filename: str, data: bytes, ip_address: Optional[str] = None) -> dict:
        filename = (filename or "").strip()
        if not filename:
            raise ValidationError("No file uploaded")
        if not filename.lower().endswith(ALLOWED_UPLOAD_EXTENSIONS):
            raise ValidationError("Only .xlsx files are accepted")
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError("File is too large (max 10 MB)")

        try:
            records = parse_roster_workbook(data)
        except (BadZipFile, ValueError, KeyError, OSError) as exc:
            logger.warning("Roster workbook %s could not be read: %s", filename, exc)
            raise ValidationError("Could not read the workbook. Please upload a valid .xlsx file")

        if not records:
            raise ValidationError("No student records found in the uploaded file")

        count = self._roster.upsert_many(records)
        self._audit.log_event(
            actor,
            "student_data_upload",
            "student_records",
            details={"filename": filename, "recordCount": count},
            ip_address=ip_address,
        )
        return {
            "message": f"Imported {count} student records",
            "filename": filename,
            "size": len(data),
            "recordCount": count,
        }
