from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.pagination import PageRequest
from ..common.web import (
    client_ip,
    current_user,
    enforce_rate_limit,
    get_json_body,
    login_required,
    rate_limit,
    staff_required,
    student_required,
    super_admin_required,
)
from ..container import Container
from ..core.exceptions import AuthorizationError
from .model import Profile

FIFTEEN_MINUTES = 15 * 60


def _start_session(user: Profile, *, remember: bool = False) -> None:
    session.clear()
    session.permanent = bool(remember)
    session["user_id"] = user.id
    session["role"] = user.role.value


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    @rate_limit("login", 10, FIFTEEN_MINUTES)
    def api_login():
        body = get_json_body()
        if not container.turnstile.verify(body.get("turnstileToken"), client_ip()):
            raise AuthorizationError("Bot verification failed. Please refresh and try again.")

        user = container.auth_service.authenticate(body.get("registerId"), body.get("password"))
        _start_session(user, remember=bool(body.get("rememberMe")))
        return jsonify({"user": user.to_public()})

    @app.route("/api/auth/register", methods=["POST"], endpoint="api_register")
    @rate_limit("register", 5, 60 * 60)
    def api_register():
        body = get_json_body()
        user = container.auth_service.register(
            register_id=body.get("registerId"),
            name=body.get("name"),
            email=body.get("email"),
            password=body.get("password"),
            hostel_block=body.get("hostelBlock"),
            department=body.get("department"),
            year=body.get("year"),
        )
        _start_session(user)
        return jsonify({"user": user.to_public()}), 201

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @rate_limit("me", 30, 60)
    @login_required
    def api_me():
        return jsonify({"user": current_user().to_public()})

    @app.route("/api/auth/change-password", methods=["POST"], endpoint="api_change_password")
    @rate_limit("change-password", 5, FIFTEEN_MINUTES)
    @login_required
    def api_change_password():
        body = get_json_body()
        container.auth_service.change_password(
            current_user(),
            current_password=body.get("currentPassword"),
            new_password=body.get("newPassword"),
        )
        return jsonify({"success": True, "message": "Password changed successfully"})

    @app.route("/api/auth/forgot-password/request", methods=["POST"], endpoint="api_forgot_password_request")
    @rate_limit("forgot-request", 3, FIFTEEN_MINUTES)
    def api_forgot_password_request():
        body = get_json_body()
        message = container.password_reset_service.request_reset(
            email=body.get("email"),
            register_id=body.get("registerId"),
        )
        return jsonify({"success": True, "message": message})

    @app.route("/api/auth/forgot-password/verify", methods=["POST"], endpoint="api_forgot_password_verify")
    @rate_limit("forgot-verify", 5, FIFTEEN_MINUTES)
    def api_forgot_password_verify():
        body = get_json_body()
        account = str(body.get("registerId") or body.get("email") or "").strip().lower()
        if account:
            enforce_rate_limit(f"forgot-verify-account:{account}", 5, FIFTEEN_MINUTES)

        container.password_reset_service.verify_reset(
            otp=body.get("otp"),
            new_password=body.get("newPassword"),
            email=body.get("email"),
            register_id=body.get("registerId"),
        )
        return jsonify({"success": True, "message": "Password reset successfully. You can now sign in."})

    @app.route("/api/auth/lookup", methods=["GET"], endpoint="api_lookup_student")
    @rate_limit("lookup", 20, 60)
    def api_lookup_student():
        register_id = (request.args.get("registerId") or "").strip().upper()
        if len(register_id) >= 5:
            enforce_rate_limit(f"lookup-id:{register_id}", 3, 60)
        return jsonify(container.auth_service.lookup_student(register_id))

    @app.route("/api/profile", methods=["PATCH"], endpoint="api_update_profile")
    @rate_limit("profile", 10, FIFTEEN_MINUTES)
    @student_required("Only students can update their profile")
    def api_update_profile():
        body = get_json_body()
        user = container.profile_service.update_profile(
            current_user(),
            name=body.get("name"),
            year=body.get("year"),
        )
        return jsonify({"success": True, "user": user.to_public()})

    @app.route("/api/admin/users", methods=["GET"], endpoint="api_admin_users")
    @rate_limit("admin-users", 30, 60)
    @staff_required
    def api_admin_users():
        page = PageRequest.parse(
            request.args.get("page"),
            request.args.get("pageSize"),
            default_size=25,
            min_size=10,
            max_size=100,
        )
        return jsonify(
            container.user_admin_service.list_users(
                current_user(),
                page=page,
                search=request.args.get("search"),
                role=request.args.get("role"),
                hostel_block=request.args.get("hostelBlock"),
                year=request.args.get("year"),
                status=request.args.get("status"),
            )
        )

    @app.route("/api/admin/users", methods=["PATCH"], endpoint="api_admin_users_action")
    @rate_limit("admin-users-action", 20, 60)
    @staff_required
    def api_admin_users_action():
        body = get_json_body()
        message = container.user_admin_service.apply_action(
            current_user(),
            user_id=body.get("userId"),
            action=body.get("action"),
            ip_address=client_ip(),
        )
        return jsonify({"success": True, "message": message})

    @app.route("/api/admin/student-data", methods=["GET"], endpoint="api_student_data_info")
    @super_admin_required
    def api_student_data_info():
        return jsonify(container.student_data_service.info())

    @app.route("/api/admin/student-data", methods=["POST"], endpoint="api_student_data_upload")
    @rate_limit("student-data-upload", 5, FIFTEEN_MINUTES)
    @super_admin_required
    def api_student_data_upload():
        upload = request.files.get("file")
        result = container.student_data_service.import_workbook(
            current_user(),
            filename=upload.filename if upload else "",
            data=upload.read() if upload else b"",
            ip_address=client_ip(),
        )
        return jsonify(result)
