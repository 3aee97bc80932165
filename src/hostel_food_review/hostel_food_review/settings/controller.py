from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import client_ip, current_user, get_json_body, rate_limit, staff_required, super_admin_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/meal-timings", methods=["GET"], endpoint="api_meal_timings")
    @rate_limit("meal-timings", 60, 60)
    def api_meal_timings():
        return jsonify({"timings": container.settings_service.timings_payload(with_display=True)})

    @app.route("/api/admin/meal-timings", methods=["GET"], endpoint="api_admin_meal_timings")
    @staff_required
    def api_admin_meal_timings():
        return jsonify({"timings": container.settings_service.timings_payload()})

    @app.route("/api/admin/meal-timings", methods=["POST"], endpoint="api_admin_save_meal_timings")
    @rate_limit("meal-timings-update", 10, 60)
    @staff_required
    def api_admin_save_meal_timings():
        body = get_json_body()
        timings = container.settings_service.save_timings(
            current_user(),
            body.get("timings"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True, "timings": timings})

    @app.route("/api/admin/maintenance", methods=["GET"], endpoint="api_admin_maintenance")
    @staff_required
    def api_admin_maintenance():
        return jsonify({"maintenance_mode": container.settings_service.maintenance_mode()})

    @app.route("/api/admin/maintenance", methods=["POST"], endpoint="api_admin_set_maintenance")
    @rate_limit("maintenance", 10, 60)
    @super_admin_required
    def api_admin_set_maintenance():
        body = get_json_body()
        value = container.settings_service.set_maintenance_mode(
            current_user(),
            body.get("maintenance_mode"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True, "maintenance_mode": value})
