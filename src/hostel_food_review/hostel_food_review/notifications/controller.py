from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_user, get_json_body, login_required, rate_limit
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications")
    @rate_limit("notifications", 30, 60)
    @login_required
    def api_notifications():
        notices = container.notification_service.list_for(current_user())
        return jsonify({"notifications": [n.to_dict() for n in notices]})

    @app.route("/api/notifications", methods=["POST"], endpoint="api_notifications_read")
    @rate_limit("notifications-read", 30, 60)
    @login_required
    def api_notifications_read():
        body = get_json_body()
        marked = container.notification_service.mark_read(current_user(), body.get("notificationIds"))
        return jsonify({"success": True, "marked": marked})
