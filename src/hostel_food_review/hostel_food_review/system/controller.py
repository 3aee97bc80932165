from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import isoformat, now_local, server_time
from ..common.web import rate_limit


def register(app: Flask, container=None) -> None:
    @app.route("/api/time", methods=["GET"], endpoint="api_time")
    @rate_limit("time", 60, 60)
    def api_time():
        return jsonify(server_time())

    @app.route("/api/health", methods=["GET"], endpoint="api_health")
    @rate_limit("health", 60, 60)
    def api_health():
        response = jsonify({"status": "healthy", "timestamp": isoformat(now_local())})
        response.headers["Cache-Control"] = "no-store"
        return response
