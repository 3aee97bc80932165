from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.web import rate_limit, super_admin_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/audit-logs", methods=["GET"], endpoint="api_audit_logs")
    @rate_limit("audit-logs", 30, 60)
    @super_admin_required
    def api_audit_logs():
        page = PageRequest.parse(
            request.args.get("page"),
            request.args.get("pageSize"),
            default_size=50,
            min_size=10,
            max_size=100,
        )
        actor_s = request.args.get("actorId")
        actor_id = None
        if actor_s:
            try:
                actor_id = int(actor_s)
            except ValueError:
                raise ValidationError("Invalid actorId")
        return jsonify(
            container.audit_service.list_logs(page=page, action=request.args.get("action"), actor_id=actor_id)
        )
