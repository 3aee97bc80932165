from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.web import client_ip, current_user, get_json_body, login_required, rate_limit, staff_required
from ..container import Container

FIFTEEN_MINUTES = 15 * 60


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/menu", methods=["GET"], endpoint="api_admin_menu")
    @rate_limit("admin-menu-get", 60, FIFTEEN_MINUTES)
    @staff_required
    def api_admin_menu():
        raw = request.args.get("date")
        day = parse_iso_date(raw, "date") if raw else today_local()
        return jsonify(
            container.menu_service.admin_menus(current_user(), day=day, hostel_block=request.args.get("hostelBlock"))
        )

    @app.route("/api/admin/menu", methods=["POST"], endpoint="api_admin_menu_save")
    @rate_limit("admin-menu-post", 30, FIFTEEN_MINUTES)
    @staff_required
    def api_admin_menu_save():
        menu_id = container.menu_service.save_menu(current_user(), get_json_body(), ip_address=client_ip())
        return jsonify({"menu": {"id": menu_id}})

    @app.route("/api/menu/today", methods=["GET"], endpoint="api_menu_today")
    @rate_limit("menu-today", 30, 60)
    @login_required
    def api_menu_today():
        return jsonify(container.menu_service.today_menus(current_user(), hostel_block=request.args.get("hostelBlock")))
