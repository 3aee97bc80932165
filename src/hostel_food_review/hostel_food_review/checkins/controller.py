from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.web import current_user, login_required, rate_limit, staff_required, student_required
from ..container import Container

CHECKIN_STUDENTS_ONLY = "Only students can check in for meals"


def _date_arg(name: str):
    raw = request.args.get(name)
    return parse_iso_date(raw, name) if raw else None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/checkin", methods=["POST"], endpoint="api_checkin")
    @rate_limit("checkin", 10, 60)
    @student_required(CHECKIN_STUDENTS_ONLY)
    def api_checkin():
        return jsonify(container.checkin_service.check_in(current_user()))

    @app.route("/api/checkin", methods=["GET"], endpoint="api_checkin_today")
    @rate_limit("checkin-get", 30, 60)
    @login_required
    def api_checkin_today():
        return jsonify(container.checkin_service.today(current_user(), day=_date_arg("date")))

    @app.route("/api/checkin/history", methods=["GET"], endpoint="api_checkin_history")
    @rate_limit("checkin-history", 20, 60)
    @login_required
    def api_checkin_history():
        return jsonify(container.checkin_service.history(current_user(), days=request.args.get("days")))

    @app.route("/api/checkin/scan", methods=["POST"], endpoint="api_checkin_scan")
    @rate_limit("checkin-scan", 10, 60)
    @student_required(CHECKIN_STUDENTS_ONLY)
    def api_checkin_scan():
        upload = request.files.get("image")
        data = upload.read() if upload else b""
        return jsonify(container.checkin_service.check_in_from_image(current_user(), data))

    @app.route("/api/admin/checkin", methods=["GET"], endpoint="api_admin_checkin")
    @rate_limit("admin-checkin", 30, 60)
    @staff_required
    def api_admin_checkin():
        return jsonify(
            container.checkin_service.admin_counts(
                current_user(),
                day=_date_arg("date") or today_local(),
                hostel_block=request.args.get("hostelBlock"),
            )
        )

    @app.route("/api/admin/checkin/qr", methods=["GET"], endpoint="api_admin_checkin_qr")
    @staff_required
    def api_admin_checkin_qr():
        png = container.checkin_service.qr_png()
        return send_file(io.BytesIO(png), mimetype="image/png", download_name="checkin-qr.png")

    @app.route("/api/admin/attendance-list", methods=["GET"], endpoint="api_admin_attendance_list")
    @rate_limit("admin-attendance", 30, 60)
    @staff_required
    def api_admin_attendance_list():
        service = container.checkin_service
        if request.args.get("mode") == "history":
            return jsonify(
                service.attendance_history(
                    current_user(),
                    start=_date_arg("startDate"),
                    end=_date_arg("endDate"),
                    hostel_block=request.args.get("hostelBlock"),
                )
            )
        return jsonify(
            service.attendance_list(
                current_user(),
                day=_date_arg("date") or today_local(),
                meal_type=request.args.get("mealType"),
                hostel_block=request.args.get("hostelBlock"),
            )
        )
