from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import client_ip, current_user, get_json_body, rate_limit, super_admin_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/super", methods=["GET"], endpoint="api_super_admin")
    @rate_limit("super-admin-get", 30, 60)
    @super_admin_required
    def api_super_admin():
        return jsonify(container.super_admin_service.overview(request.args.get("action")))

    @app.route("/api/admin/super", methods=["POST"], endpoint="api_super_admin_action")
    @rate_limit("super-admin-post", 20, 60)
    @super_admin_required
    def api_super_admin_action():
        return jsonify(container.super_admin_service.perform(current_user(), get_json_body(), ip_address=client_ip()))
