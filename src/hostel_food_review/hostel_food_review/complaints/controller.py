from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.web import client_ip, current_user, get_json_body, login_required, rate_limit, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/complaints", methods=["GET"], endpoint="api_complaints")
    @rate_limit("complaints-get", 30, 60)
    @login_required
    def api_complaints():
        page = PageRequest.parse(
            request.args.get("page"),
            request.args.get("pageSize"),
            default_size=50,
            min_size=1,
            max_size=200,
        )
        return jsonify(
            container.complaint_service.list_complaints(
                current_user(),
                page=page,
                status=request.args.get("status"),
                category=request.args.get("category"),
                hostel_block=request.args.get("hostelBlock"),
            )
        )

    @app.route("/api/complaints", methods=["POST"], endpoint="api_complaints_create")
    @rate_limit("complaints-post", 5, 60 * 60)
    @login_required
    def api_complaints_create():
        complaint = container.complaint_service.submit(current_user(), get_json_body())
        return jsonify({"success": True, "complaint": complaint.to_dict()}), 201

    @app.route("/api/complaints", methods=["PATCH"], endpoint="api_complaints_update")
    @rate_limit("complaints-patch", 20, 60)
    @staff_required
    def api_complaints_update():
        complaint = container.complaint_service.respond(current_user(), get_json_body(), ip_address=client_ip())
        return jsonify({"success": True, "complaint": complaint.to_dict()})
