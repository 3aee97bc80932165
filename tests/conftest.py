from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

import pytest
from werkzeug.security import generate_password_hash

from src.hostel_food_review.hostel_food_review.audit.model import AuditLog
from src.hostel_food_review.hostel_food_review.blocks.model import HostelBlock
from src.hostel_food_review.hostel_food_review.checkins.model import MealCheckin
from src.hostel_food_review.hostel_food_review.complaints.model import Complaint
from src.hostel_food_review.hostel_food_review.container import wire_container
from src.hostel_food_review.hostel_food_review.core.enums import ComplaintStatus, Role
from src.hostel_food_review.hostel_food_review.core.exceptions import DuplicateEntryError
from src.hostel_food_review.hostel_food_review.menus.model import Menu
from src.hostel_food_review.hostel_food_review.reviews.model import Review
from src.hostel_food_review.hostel_food_review.settings.model import SiteSettings
from src.hostel_food_review.hostel_food_review.users.model import PasswordReset, Profile

IST = ZoneInfo("Asia/Kolkata")

BLOCK_A = "Annapoorani Hostel"
BLOCK_V = "Visalakshi Hostel"

# werkzeug's default scrypt is slow; tests only need a valid hash
_HASH_METHOD = "pbkdf2:sha256:1000"


def make_hash(password: str) -> str:
    return generate_password_hash(password, method=_HASH_METHOD)


class FakeUsers:
    def __init__(self):
        self.rows: dict[int, Profile] = {}
        self._next_id = 1

    def add(
        self,
        register_id: str,
        *,
        name: str = "Test Student",
        role: Role = Role.STUDENT,
        hostel_block: Optional[str] = BLOCK_A,
        password: str = "password123",
        email: Optional[str] = None,
        department: Optional[str] = "CSE",
        year: Optional[str] = "2nd Year",
        deactivated: bool = False,
        created_at: Optional[datetime] = None,
    ) -> Profile:
        uid = self._next_id
        self._next_id += 1
        profile = Profile(
            id=uid,
            register_id=register_id.upper(),
            name=name,
            email=email if email is not None else f"{register_id.lower()}@kanchiuniv.ac.in",
            password_hash=make_hash(password),
            role=role,
            hostel_block=hostel_block,
            department=department,
            year=year,
            deactivated=deactivated,
            created_at=created_at or datetime(2026, 1, 5, 9, 0),
        )
        self.rows[uid] = profile
        return profile

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_register_id(self, register_id):
        wanted = str(register_id).upper()
        return next((u for u in self.rows.values() if u.register_id == wanted), None)

    def get_by_email(self, email):
        wanted = str(email).lower()
        return next((u for u in self.rows.values() if (u.email or "").lower() == wanted), None)

    def get_many(self, user_ids: Iterable[int]):
        return {uid: self.rows[uid] for uid in set(user_ids) if uid in self.rows}

    def create_profile(self, *, register_id, name, email, password_hash, role, hostel_block, department, year, created_at):
        if self.get_by_register_id(register_id) or (email and self.get_by_email(email)):
            raise DuplicateEntryError("Duplicate entry")
        uid = self._next_id
        self._next_id += 1
        self.rows[uid] = Profile(
            id=uid,
            register_id=register_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            hostel_block=hostel_block,
            department=department,
            year=year,
            created_at=created_at,
        )
        return uid

    def update_password(self, user_id, password_hash):
        self.rows[user_id] = replace(self.rows[user_id], password_hash=password_hash)
        return True

    def update_fields(self, user_id, *, fields):
        self.rows[user_id] = replace(self.rows[user_id], **fields)
        return True

    def set_deactivated(self, user_id, deactivated):
        self.rows[user_id] = replace(self.rows[user_id], deactivated=deactivated)
        return True

    def set_role(self, user_id, role):
        self.rows[user_id] = replace(self.rows[user_id], role=role)
        return True

    def delete(self, user_id):
        return self.rows.pop(user_id, None) is not None

    def search(self, *, search=None, role=None, hostel_block=None, year=None, deactivated=None, offset=0, limit=25):
        rows = list(self.rows.values())
        if search:
            needle = search.lower()
            rows = [u for u in rows if needle in u.name.lower() or needle in u.register_id.lower()]
        if role:
            rows = [u for u in rows if u.role == role]
        if hostel_block:
            rows = [u for u in rows if u.hostel_block == hostel_block]
        if year:
            rows = [u for u in rows if u.year == year]
        if deactivated is not None:
            rows = [u for u in rows if u.deactivated == deactivated]
        rows.sort(key=lambda u: u.created_at, reverse=True)
        return rows[offset:offset + limit], len(rows)

    def list_staff(self):
        return [u for u in self.rows.values() if u.role.is_staff]

    def list_students(self, *, hostel_block=None):
        return sorted(
            (
                u for u in self.rows.values()
                if u.role == Role.STUDENT and not u.deactivated and (not hostel_block or u.hostel_block == hostel_block)
            ),
            key=lambda u: u.name,
        )


class FakeRoster:
    def __init__(self):
        self.records = {}

    def get(self, register_id):
        return self.records.get(str(register_id).upper())

    def upsert_many(self, records):
        for r in records:
            self.records[r.register_id] = r
        return len(records)

    def counts_by_block(self):
        counts: dict[str, int] = {}
        for r in self.records.values():
            counts[r.hostel_block] = counts.get(r.hostel_block, 0) + 1
        return counts


class FakeResets:
    def __init__(self):
        self.rows: dict[int, PasswordReset] = {}
        self._next_id = 1

    def replace(self, *, register_id, email, otp_hash, expires_at):
        self.rows = {k: v for k, v in self.rows.items() if v.register_id != register_id}
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = PasswordReset(id=rid, register_id=register_id, email=email, otp_hash=otp_hash, expires_at=expires_at)

    def find(self, *, otp_hash, register_id=None, email=None):
        for r in self.rows.values():
            if r.otp_hash != otp_hash:
                continue
            if register_id and r.register_id != register_id:
                continue
            if email and r.email != email:
                continue
            return r
        return None

    def delete(self, reset_id):
        self.rows.pop(reset_id, None)


class FakeBlocks:
    def __init__(self, names=(BLOCK_A, BLOCK_V)):
        self.rows: dict[int, HostelBlock] = {}
        for name in names:
            self.create(name)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda b: b.name)

    def get_by_id(self, block_id):
        return self.rows.get(int(block_id))

    def get_by_name(self, name):
        return next((b for b in self.rows.values() if b.name == name), None)

    def create(self, name):
        if self.get_by_name(name):
            raise DuplicateEntryError(name)
        bid = len(self.rows) + 1
        while bid in self.rows:
            bid += 1
        self.rows[bid] = HostelBlock(id=bid, name=name)
        return bid

    def delete(self, block_id):
        return self.rows.pop(int(block_id), None) is not None


class FakeAudit:
    def __init__(self):
        self.entries: list[AuditLog] = []

    def insert(self, *, actor_id, actor_email, actor_role, action, target_type, target_id, details, ip_address, created_at):
        entry = AuditLog(
            id=len(self.entries) + 1,
            actor_id=actor_id,
            actor_email=actor_email,
            actor_role=actor_role,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
            created_at=created_at,
        )
        self.entries.append(entry)
        return entry.id

    def list_logs(self, *, action=None, actor_id=None, offset=0, limit=50):
        rows = [e for e in reversed(self.entries) if (not action or e.action == action) and (actor_id is None or e.actor_id == actor_id)]
        return rows[offset:offset + limit], len(rows)

    @property
    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


class FakeSiteSettings:
    def __init__(self):
        self.row: Optional[SiteSettings] = None

    def get(self):
        return self.row

    def save_meal_timings(self, timings):
        self.row = SiteSettings(maintenance_mode=bool(self.row and self.row.maintenance_mode), meal_timings=timings)

    def set_maintenance_mode(self, enabled):
        self.row = SiteSettings(maintenance_mode=enabled, meal_timings=self.row.meal_timings if self.row else None)


class FakeCheckins:
    def __init__(self):
        self.rows: dict[int, MealCheckin] = {}

    def create(self, *, user_id, meal_type, date, hostel_block, checked_in_at):
        if self.get(user_id=user_id, meal_type=meal_type, date=date):
            raise DuplicateEntryError("Duplicate entry")
        cid = len(self.rows) + 1
        self.rows[cid] = MealCheckin(
            id=cid, user_id=user_id, meal_type=meal_type, date=date, hostel_block=hostel_block, checked_in_at=checked_in_at
        )
        return cid

    def get(self, *, user_id, meal_type, date):
        return next(
            (c for c in self.rows.values() if c.user_id == user_id and c.meal_type == meal_type and c.date == date),
            None,
        )

    def list_between(self, start, end, *, user_id=None, hostel_block=None, meal_type=None):
        rows = [
            c for c in self.rows.values()
            if start <= c.date <= end
            and (user_id is None or c.user_id == user_id)
            and (not hostel_block or c.hostel_block == hostel_block)
            and (meal_type is None or c.meal_type == meal_type)
        ]
        return sorted(rows, key=lambda c: c.checked_in_at)


class FakeMenus:
    def __init__(self):
        self.rows: dict[int, Menu] = {}

    def list_for_date(self, day, *, hostel_block=None):
        return [m for m in self.rows.values() if m.date == day and (m.hostel_block is None or m.hostel_block == hostel_block)]

    def upsert(self, *, day, meal_type, items, timing, special_label, hostel_block):
        for mid, m in self.rows.items():
            if m.date == day and m.meal_type == meal_type and m.hostel_block == hostel_block:
                self.rows[mid] = replace(m, items=items, timing=timing, special_label=special_label)
                return mid
        mid = len(self.rows) + 1
        self.rows[mid] = Menu(
            id=mid, date=day, meal_type=meal_type, items=items, timing=timing,
            special_label=special_label, hostel_block=hostel_block,
        )
        return mid

    def special_labels(self, start, end):
        labels: dict[date, str] = {}
        for m in sorted(self.rows.values(), key=lambda m: m.id):
            if m.special_label and start <= m.date <= end:
                labels.setdefault(m.date, m.special_label)
        return labels


class FakeReviews:
    def __init__(self, users: FakeUsers):
        self._users = users
        self.rows: dict[int, Review] = {}

    def _with_block(self, r: Review) -> Review:
        p = self._users.get_by_id(r.user_id)
        return replace(r, reviewer_block=p.hostel_block if p else None)

    def create(self, *, user_id, day, meal_type, rating, review_text, sentiment, anonymous, created_at):
        if any(r.user_id == user_id and r.date == day and r.meal_type == meal_type for r in self.rows.values()):
            raise DuplicateEntryError("Duplicate entry")
        rid = len(self.rows) + 1
        while rid in self.rows:
            rid += 1
        self.rows[rid] = Review(
            id=rid, user_id=user_id, date=day, meal_type=meal_type, rating=rating, review_text=review_text,
            sentiment=sentiment, anonymous=anonymous, created_at=created_at,
        )
        return rid

    def get(self, review_id):
        r = self.rows.get(int(review_id))
        return self._with_block(r) if r else None

    def update(self, review_id, *, rating, review_text, sentiment):
        self.rows[review_id] = replace(self.rows[review_id], rating=rating, review_text=review_text, sentiment=sentiment)
        return True

    def delete(self, review_id):
        return self.rows.pop(review_id, None) is not None

    def set_reply(self, review_id, *, reply, replied_by, replied_at):
        self.rows[review_id] = replace(
            self.rows[review_id], admin_reply=reply, admin_reply_by=replied_by, admin_replied_at=replied_at
        )
        return True

    def _filter(self, *, user_id=None, hostel_block=None, meal_type=None):
        rows = [self._with_block(r) for r in self.rows.values()]
        if user_id is not None:
            rows = [r for r in rows if r.user_id == user_id]
        if hostel_block:
            rows = [
                r for r in rows
                if r.reviewer_block == hostel_block and self._users.get_by_id(r.user_id).role == Role.STUDENT
            ]
        if meal_type:
            rows = [r for r in rows if r.meal_type == meal_type]
        return rows

    def search(self, *, user_id=None, hostel_block=None, day=None, meal_type=None, offset=0, limit=50):
        rows = self._filter(user_id=user_id, hostel_block=hostel_block, meal_type=meal_type)
        if day:
            rows = [r for r in rows if r.date == day]
        rows.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return rows[offset:offset + limit], len(rows)

    def list_between(self, start, end, *, meal_type=None, hostel_block=None):
        rows = [r for r in self._filter(hostel_block=hostel_block, meal_type=meal_type) if start <= r.date <= end]
        return sorted(rows, key=lambda r: (r.date, r.created_at))

    def list_replied_since(self, user_id, since, *, limit=5):
        rows = [
            r for r in self.rows.values()
            if r.user_id == user_id and r.admin_reply and r.admin_replied_at and r.admin_replied_at >= since
        ]
        rows.sort(key=lambda r: r.admin_replied_at, reverse=True)
        return rows[:limit]


class FakeComplaints:
    def __init__(self):
        self.rows: dict[int, Complaint] = {}

    def create(self, *, user_id, hostel_block, complaint_text, category, created_at):
        cid = len(self.rows) + 1
        self.rows[cid] = Complaint(
            id=cid, user_id=user_id, hostel_block=hostel_block, complaint_text=complaint_text,
            category=category, status=ComplaintStatus.PENDING, created_at=created_at,
        )
        return cid

    def get(self, complaint_id):
        return self.rows.get(int(complaint_id))

    def update(self, complaint_id, *, status=None, reply=None, replied_by=None, replied_at=None):
        changes = {}
        if status is not None:
            changes["status"] = status
        if reply is not None:
            changes.update(admin_reply=reply, replied_by=replied_by, replied_at=replied_at)
        self.rows[complaint_id] = replace(self.rows[complaint_id], **changes)
        return True

    def search(self, *, user_id=None, hostel_block=None, status=None, category=None, offset=0, limit=50):
        rows = [
            c for c in self.rows.values()
            if (user_id is None or c.user_id == user_id)
            and (not hostel_block or c.hostel_block == hostel_block)
            and (status is None or c.status == status)
            and (category is None or c.category == category)
        ]
        rows.sort(key=lambda c: (c.created_at, c.id), reverse=True)
        return rows[offset:offset + limit], len(rows)

    def list_between(self, start, end, *, hostel_block=None):
        rows = [
            c for c in self.rows.values()
            if start <= c.created_at.date() <= end and (not hostel_block or c.hostel_block == hostel_block)
        ]
        return sorted(rows, key=lambda c: c.created_at)

    def list_replied_since(self, user_id, since, *, limit=5):
        rows = [
            c for c in self.rows.values()
            if c.user_id == user_id and c.admin_reply and c.replied_at and c.replied_at >= since
        ]
        rows.sort(key=lambda c: c.replied_at, reverse=True)
        return rows[:limit]


class FakeNotificationReads:
    def __init__(self):
        self.read: set[tuple[int, str]] = set()

    def read_ids(self, user_id, notification_ids):
        return {nid for nid in notification_ids if (user_id, nid) in self.read}

    def mark_read(self, user_id, notification_ids):
        for nid in notification_ids:
            self.read.add((user_id, nid))
        return len(notification_ids)


class FakeMailer:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    def send_welcome(self, **kwargs):
        if self.fail:
            raise RuntimeError("SMTP down")
        self.sent.append({"kind": "welcome", **kwargs})

    def send_password_reset_otp(self, **kwargs):
        self.sent.append({"kind": "otp", **kwargs})


class FakeTurnstile:
    def __init__(self, ok: bool = True):
        self.ok = ok

    def verify(self, token, remote_ip=None):
        return self.ok


@pytest.fixture
def fixed_now() -> datetime:
    # Wednesday, during the default lunch window
    return datetime(2026, 3, 4, 13, 30, tzinfo=IST)


@pytest.fixture
def repos() -> SimpleNamespace:
    users = FakeUsers()
    return SimpleNamespace(
        users=users,
        roster=FakeRoster(),
        resets=FakeResets(),
        blocks=FakeBlocks(),
        audit=FakeAudit(),
        settings=FakeSiteSettings(),
        checkins=FakeCheckins(),
        menus=FakeMenus(),
        reviews=FakeReviews(users),
        complaints=FakeComplaints(),
        reads=FakeNotificationReads(),
        mailer=FakeMailer(),
        turnstile=FakeTurnstile(),
    )


@pytest.fixture
def container(repos):
    return wire_container(
        conn=None,
        users_repo=repos.users,
        roster_repo=repos.roster,
        resets_repo=repos.resets,
        blocks_repo=repos.blocks,
        audit_repo=repos.audit,
        settings_repo=repos.settings,
        checkins_repo=repos.checkins,
        menus_repo=repos.menus,
        reviews_repo=repos.reviews,
        complaints_repo=repos.complaints,
        notification_reads_repo=repos.reads,
        turnstile=repos.turnstile,
        mailer=repos.mailer,
        app_url="http://hostel.test",
    )


@pytest.fixture
def student(repos) -> Profile:
    return repos.users.add("11245101", name="Anitha R")


@pytest.fixture
def admin(repos) -> Profile:
    return repos.users.add("ADMINAH", name="Annapoorani Warden", role=Role.ADMIN, department=None, year=None)


@pytest.fixture
def super_admin(repos) -> Profile:
    return repos.users.add("SUPERADMIN", name="Super Admin", role=Role.SUPER_ADMIN, hostel_block=None, department=None, year=None)


@pytest.fixture
def app(container):
    from src.hostel_food_review.hostel_food_review.main import create_app

    return create_app(settings_module="config.testing", container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user: Profile):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id
            sess["role"] = user.role.value
        return client

    return _login
