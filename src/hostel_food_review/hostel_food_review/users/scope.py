"""Row scoping for staff views over block data."""
from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .model import Profile

NO_BLOCK_ASSIGNED = "Your admin account has no hostel block assigned"


def scoped_block(actor: Profile, requested: Optional[str] = None) -> Optional[str]:
    """Admins always see their own block; a super admin may pick one ('all' or blank = every block)."""
    if actor.role == Role.ADMIN:
        if not actor.hostel_block:
            raise AuthorizationError(NO_BLOCK_ASSIGNED)
        return actor.hostel_block
    requested = (requested or "").strip()
    if not requested or requested == "all":
        return None
    return requested
