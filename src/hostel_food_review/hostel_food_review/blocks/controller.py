from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import rate_limit
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/blocks", methods=["GET"], endpoint="api_blocks")
    @rate_limit("blocks", 20, 60)
    def api_blocks():
        return jsonify({"blocks": container.block_service.list_blocks()})
