"""Shared Flask glue: JSON errors, auth guards and the rate-limit decorator."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any

from flask import Flask, current_app, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import DomainError
from .rate_limit import RateLimitResult, get_client_ip

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."


class RateLimitExceeded(Exception):
    def __init__(self, result: RateLimitResult):
        super().__init__(RATE_LIMIT_MESSAGE)
        self.result = result


def json_error(message: str, status: int, **extra: Any):
    body = {"error": message}
    body.update(extra)
    return jsonify(body), status


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return data


def client_ip() -> str:
    return get_client_ip(request.headers)


def container():
    return current_app.extensions["hostel_container"]


def current_user():
    return g.current_user


def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    if not current_app.config.get("RATELIMIT_ENABLED", True):
        return
    limiter = current_app.extensions["rate_limiter"]
    result = limiter.hit(key, limit, window_seconds)
    if not result.allowed:
        logger.info("Rate limit hit for %s", key)
        raise RateLimitExceeded(result)


def rate_limit(name: str, limit: int, window_seconds: int):
    """Per-IP fixed window limit, keyed ``name:ip``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            enforce_rate_limit(f"{name}:{client_ip()}", limit, window_seconds)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def _load_current_user():
    if "user_id" not in session:
        return json_error("Not authenticated", 401)

    profile = container().users_repo.get_by_id(int(session["user_id"]))
    if not profile:
        return json_error("Profile not found", 404)
    if profile.deactivated:
        session.clear()
        return json_error("Account is deactivated", 401)

    g.current_user = profile
    return None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        denied = _load_current_user()
        if denied is not None:
            return denied
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role, message: str = "Unauthorized"):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            denied = _load_current_user()
            if denied is not None:
                return denied
            if g.current_user.role.value not in allowed:
                return json_error(message, 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def student_required(message: str = "Only students can perform this action"):
    return roles_required(Role.STUDENT, message=message)


def staff_required(view):
    """Admin or super admin."""
    return roles_required(Role.ADMIN, Role.SUPER_ADMIN)(view)


def super_admin_required(view):
    return roles_required(Role.SUPER_ADMIN, message="Forbidden: super admin only")(view)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return json_error(str(exc) or "Request failed", exc.status_code, **exc.extra)

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limited(exc: RateLimitExceeded):
        reset = datetime.fromtimestamp(exc.result.reset_at, tz=timezone.utc)
        response, status = json_error(RATE_LIMIT_MESSAGE, 429)
        response.headers["Retry-After"] = str(exc.result.retry_after(time.time()))
        response.headers["X-RateLimit-Reset"] = reset.isoformat().replace("+00:00", "Z")
        return response, status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return json_error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return json_error("Internal server error", 500)
