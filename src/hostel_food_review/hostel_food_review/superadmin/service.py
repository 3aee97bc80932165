from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from werkzeug.security import generate_password_hash

from ..audit.service import AuditService
from ..blocks.repository import BlockRepository
from ..common.datetime_utils import now_local, to_db
from ..common.validators import require_alphanumeric, require_length_between
from ..core.enums import Role
from ..core.exceptions import ConflictError, DuplicateEntryError, NotFoundError, ValidationError
from ..users.model import Profile
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


def _parse_id(value: object, message: str) -> int:
    if value in (None, ""):
        raise ValidationError(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(message)


class SuperAdminService:
    """Use case: super admin manages hostel blocks and staff accounts."""

    def __init__(self, users: UserRepository, blocks: BlockRepository, audit: AuditService):
        self._users = users
        self._blocks = blocks
        self._audit = audit

    def overview(self, section: Optional[str] = None) -> dict:
        admins = [u.to_admin_row() for u in self._users.list_staff()]
        blocks = [b.to_dict() for b in self._blocks.list_all()]
        if section == "admins":
            return {"admins": admins}
        if section == "blocks":
            return {"blocks": blocks}
        return {"admins": admins, "blocks": blocks}

    def add_block(self, actor: Profile, *, name: object, ip_address: Optional[str] = None) -> dict:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Block name is required")
        name = name.strip().upper()
        require_length_between(name, "Block name", 2, 60)

        try:
            block_id = self._blocks.create(name)
        except DuplicateEntryError:
            raise ConflictError("Block already exists")

        self._audit.log_event(actor, "add_block", "hostel_block", block_id, details={"name": name}, ip_address=ip_address)
        return {"success": True, "id": block_id, "name": name}

    def remove_block(self, actor: Profile, *, block_id: object, ip_address: Optional[str] = None) -> dict:
        block_id = _parse_id(block_id, "Block ID is required")
        block = self._blocks.get_by_id(block_id)
        if not block:
            raise NotFoundError("Block not found")

        self._blocks.delete(block.id)
        self._audit.log_event(actor, "remove_block", "hostel_block", block.id, details={"name": block.name}, ip_address=ip_address)
        return {"success": True}

    def add_admin(self, actor: Profile, body: dict, *, ip_address: Optional[str] = None, now: datetime | None = None) -> dict:
        register_id, name, password = body.get("registerId"), body.get("name"), body.get("password")
        if not register_id or not name or not password:
            raise ValidationError("Register ID, name, and password are required")

        password = str(password)
        if len(password) < 8:
            raise ValidationError("Password must be at least 8 characters long")
        if len(password) > 128:
            raise ValidationError("Password must be at most 128 characters long")

        name = require_length_between(str(name).strip(), "Name", 2, 60)
        register_id = require_length_between(str(register_id).strip(), "Register ID", 2, 30)
        require_alphanumeric(register_id, "Register ID")

        role = Role.SUPER_ADMIN if body.get("role") == Role.SUPER_ADMIN.value else Role.ADMIN
        hostel_block = None
        if role == Role.ADMIN:
            hostel_block = str(body.get("hostelBlock") or "").strip()
            if not hostel_block or not self._blocks.get_by_name(hostel_block):
                raise ValidationError("A valid hostel block is required for admins")

        try:
            admin_id = self._users.create_profile(
                register_id=register_id.upper(),
                name=name,
                email=f"{register_id.lower()}@hostel.local",
                password_hash=generate_password_hash(password),
                role=role,
                hostel_block=hostel_block,
                department=None,
                year=None,
                created_at=to_db(now or now_local()),
            )
        except DuplicateEntryError:
            raise ConflictError("An account with this Register ID already exists")

        logger.info("Staff account %s (%s) created by %s", register_id.upper(), role.value, actor.register_id)
        self._audit.log_event(
            actor,
            "add_admin",
            "profile",
            admin_id,
            details={"registerId": register_id.upper(), "role": role.value, "hostelBlock": hostel_block},
            ip_address=ip_address,
        )
        return {"success": True, "id": admin_id, "role": role.value}

    def remove_admin(self, actor: Profile, *, admin_id: object, ip_address: Optional[str] = None) -> dict:
        admin_id = _parse_id(admin_id, "Admin ID is required")
        if admin_id == actor.id:
            raise ValidationError("Cannot remove yourself")

        target = self._users.get_by_id(admin_id)
        if not target or not target.role.is_staff:
            raise NotFoundError("Admin not found")

        self._users.delete(target.id)
        self._audit.log_event(
            actor,
            "remove_admin",
            "profile",
            target.id,
            details={"registerId": target.register_id, "role": target.role.value},
            ip_address=ip_address,
        )
        return {"success": True}

    def perform(self, actor: Profile, body: dict, *, ip_address: Optional[str] = None) -> dict:
        action = body.get("action")
        if action == "add_block":
            return self.add_block(actor, name=body.get("name"), ip_address=ip_address)
        if action == "remove_block":
            return self.remove_block(actor, block_id=body.get("blockId"), ip_address=ip_address)
        if action == "add_admin":
            return self.add_admin(actor, body, ip_address=ip_address)
        if action == "remove_admin":
            return self.remove_admin(actor, admin_id=body.get("adminId"), ip_address=ip_address)
        raise ValidationError("Invalid action")
