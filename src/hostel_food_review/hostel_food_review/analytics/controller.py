from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user, rate_limit, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/analytics", methods=["GET"], endpoint="api_analytics")
    @rate_limit("analytics", 30, 60)
    @staff_required
    def api_analytics():
        args = request.args
        return jsonify(
            container.analytics_service.dashboard(
                current_user(),
                days=args.get("days"),
                meal_type=args.get("mealType"),
                hostel_block=args.get("hostelBlock"),
                date_from=args.get("from"),
                date_to=args.get("to"),
            )
        )

    @app.route("/api/reports/weekly", methods=["GET"], endpoint="api_weekly_report")
    @rate_limit("weekly-report", 10, 60)
    @staff_required
    def api_weekly_report():
        return jsonify(
            container.analytics_service.weekly_report(
                current_user(),
                weeks=request.args.get("weeks"),
                hostel_block=request.args.get("hostelBlock"),
            )
        )
