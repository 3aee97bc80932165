from __future__ import annotations

from datetime import datetime

from src.hostel_food_review.hostel_food_review.audit.service import AuditService
from src.hostel_food_review.hostel_food_review.common.pagination import PageRequest


class BrokenLogs:
    def insert(self, **kwargs):
        raise RuntimeError("table missing")


def test_log_event_records_actor_and_target(repos, admin, fixed_now):
    AuditService(repos.audit).log_event(
        admin, "reply_complaint", "complaint", 12, details={"status": "resolved"}, ip_address="10.0.0.2", now=fixed_now
    )

    entry = repos.audit.entries[0]
    assert entry.actor_id == admin.id
    assert entry.actor_role == "admin"
    assert entry.target_id == "12"
    assert entry.details == {"status": "resolved"}
    assert entry.created_at == datetime(2026, 3, 4, 13, 30)


def test_failed_write_does_not_raise(admin, caplog):
    AuditService(BrokenLogs()).log_event(admin, "add_block", "hostel_block", 1)
    assert "Audit log write failed" in caplog.text


def test_list_logs_newest_first_with_filter(repos, admin, super_admin):
    svc = AuditService(repos.audit)
    svc.log_event(super_admin, "add_block", "hostel_block", 3)
    svc.log_event(admin, "user_deactivate", "profile", 9)
    svc.log_event(super_admin, "remove_block", "hostel_block", 3)

    everything = svc.list_logs(page=PageRequest(page=1, page_size=2))
    assert [log["action"] for log in everything["logs"]] == ["remove_block", "user_deactivate"]
    assert everything["total"] == 3

    filtered = svc.list_logs(page=PageRequest(page=1, page_size=10), action="add_block")
    assert filtered["total"] == 1
    assert filtered["logs"][0]["actorId"] == super_admin.id
