from __future__ import annotations

from flask import Flask, Response, request

from ..common.web import current_user, rate_limit, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/export", methods=["GET"], endpoint="api_admin_export")
    @rate_limit("export", 10, 60)
    @staff_required
    def api_admin_export():
        args = request.args
        export = container.export_service.export(
            current_user(),
            export_type=args.get("type"),
            fmt=args.get("format") or "csv",
            start=args.get("startDate") or args.get("from"),
            end=args.get("endDate") or args.get("to"),
            hostel_block=args.get("hostelBlock") or args.get("block"),
        )
        return Response(
            export.content,
            status=200,
            headers={
                "Content-Type": "text/csv; charset=utf-8",
                "Content-Disposition": f'attachment; filename="{export.filename}"',
                "Cache-Control": "no-store",
            },
        )
