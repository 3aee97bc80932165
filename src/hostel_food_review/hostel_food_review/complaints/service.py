from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..audit.service import AuditService
from ..blocks.repository import BlockRepository
from ..common.datetime_utils import now_local, to_db
from ..common.pagination import PageRequest
from ..core.constants import MAX_COMPLAINT_REPLY, MAX_COMPLAINT_TEXT
from ..core.enums import ComplaintCategory, ComplaintStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import Profile
from ..users.repository import UserRepository
from ..users.scope import NO_BLOCK_ASSIGNED, scoped_block
from .model import Complaint
from .repository import ComplaintRepository

logger = logging.getLogger(__name__)


def _lenient_enum(enum_cls, value):
    # Unknown filter values are ignored rather than rejected
    try:
        return enum_cls(value) if value else None
    except ValueError:
        return None


class ComplaintService:
    """Use case: students file complaints about the mess; staff triage and reply."""

    def __init__(
        self,
        complaints: ComplaintRepository,
        users: UserRepository,
        blocks: BlockRepository,
        audit: AuditService,
    ):
        self._complaints = complaints
        self._users = users
        self._blocks = blocks
        self._audit = audit

    def enrich(self, complaints: list[Complaint]) -> list[dict]:
        ids = {c.user_id for c in complaints} | {c.replied_by for c in complaints if c.replied_by}
        profiles = self._users.get_many(ids)
        rows = []
        for c in complaints:
            student = profiles.get(c.user_id)
            replier = profiles.get(c.replied_by) if c.replied_by else None
            row = c.to_dict()
            row.update(
                studentName=student.name if student else "Unknown",
                registerNumber=student.register_id if student else "N/A",
                repliedByName=replier.name if replier else None,
            )
            rows.append(row)
        return rows

    def list_complaints(
        self,
        user: Profile,
        *,
        page: PageRequest,
        status: Optional[str] = None,
        category: Optional[str] = None,
        hostel_block: Optional[str] = None,
    ) -> dict:
        filters = {
            "status": _lenient_enum(ComplaintStatus, status),
            "category": _lenient_enum(ComplaintCategory, category),
            "offset": page.offset,
            "limit": page.page_size,
        }
        if user.is_student:
            complaints, total = self._complaints.search(user_id=user.id, **filters)
        else:
            complaints, total = self._complaints.search(hostel_block=scoped_block(user, hostel_block), **filters)

        return {
            "complaints": self.enrich(list(complaints)),
            "userRole": user.role.value,
            "userBlock": user.hostel_block,
            "hostelBlocks": [b.name for b in self._blocks.list_all()] if user.role == Role.SUPER_ADMIN else [],
            "pagination": page.describe(total),
        }

    def submit(self, user: Profile, body: dict, *, now: datetime | None = None) -> Complaint:
        if not user.is_student:
            raise AuthorizationError("Only students can submit complaints")
        if not user.hostel_block:
            raise ValidationError("No hostel block assigned to your profile")

        text = body.get("complaintText")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Complaint text is required")
        text = text.strip()
        if len(text) > MAX_COMPLAINT_TEXT:
            raise ValidationError(f"Complaint text must be under {MAX_COMPLAINT_TEXT} characters")

        try:
            category = ComplaintCategory(body.get("category") or ComplaintCategory.OTHER.value)
        except ValueError:
            raise ValidationError("Invalid category")

        complaint_id = self._complaints.create(
            user_id=user.id,
            hostel_block=user.hostel_block,
            complaint_text=text,
            category=category,
            created_at=to_db(now or now_local()),
        )
        logger.info("Complaint %s filed by %s (%s)", complaint_id, user.register_id, category.value)
        complaint = self._complaints.get(complaint_id)
        if not complaint:
            raise NotFoundError("Complaint not found")
        return complaint

    def respond(
        self,
        actor: Profile,
        body: dict,
        *,
        ip_address: Optional[str] = None,
        now: datetime | None = None,
    ) -> Complaint:
        raw_id = body.get("complaintId", body.get("id"))
        if raw_id in (None, ""):
            raise ValidationError("Complaint ID is required")
        try:
            complaint_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid complaint ID")

        if actor.role == Role.ADMIN and not actor.hostel_block:
            raise AuthorizationError(NO_BLOCK_ASSIGNED)

        complaint = self._complaints.get(complaint_id)
        if not complaint:
            raise NotFoundError("Complaint not found")
        if actor.role == Role.ADMIN and complaint.hostel_block != actor.hostel_block:
            raise AuthorizationError("You can only manage complaints in your assigned block")

        reply = body.get("reply")
        if reply is not None:
            if not isinstance(reply, str):
                raise ValidationError("Reply must be text")
            reply = reply.strip()
            if len(reply) > MAX_COMPLAINT_REPLY:
                raise ValidationError(f"Reply must be under {MAX_COMPLAINT_REPLY} characters")
            reply = reply or None

        status = None
        if body.get("status") is not None:
            try:
                status = ComplaintStatus(body.get("status"))
            except ValueError:
                raise ValidationError("Invalid status")

        if status is None and reply is None:
            raise ValidationError("No valid fields to update")

        self._complaints.update(
            complaint.id,
            status=status,
            reply=reply,
            replied_by=actor.id if reply is not None else None,
            replied_at=to_db(now or now_local()) if reply is not None else None,
        )
        self._audit.log_event(
            actor,
            "complaint_update",
            "complaint",
            complaint.id,
            details={"status": status.value if status else None, "replied": reply is not None},
            ip_address=ip_address,
        )
        return self._complaints.get(complaint.id) or complaint
