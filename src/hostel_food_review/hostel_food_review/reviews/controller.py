from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.pagination import PageRequest
from ..common.web import client_ip, current_user, get_json_body, login_required, rate_limit, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reviews", methods=["GET"], endpoint="api_reviews")
    @rate_limit("reviews-get", 30, 60)
    @login_required
    def api_reviews():
        raw_date = request.args.get("date")
        page = PageRequest.parse(
            request.args.get("page"),
            request.args.get("pageSize"),
            default_size=50,
            min_size=1,
            max_size=100,
        )
        return jsonify(
            container.review_service.list_reviews(
                current_user(),
                page=page,
                day=parse_iso_date(raw_date, "date") if raw_date else None,
                meal_type=request.args.get("mealType"),
                hostel_block=request.args.get("hostelBlock"),
            )
        )

    @app.route("/api/reviews", methods=["POST"], endpoint="api_reviews_create")
    @rate_limit("reviews-post", 10, 15 * 60)
    @login_required
    def api_reviews_create():
        review = container.review_service.create_review(current_user(), get_json_body())
        return jsonify({"review": review.to_dict()}), 201

    @app.route("/api/reviews", methods=["PATCH"], endpoint="api_reviews_update")
    @rate_limit("reviews-patch", 10, 15 * 60)
    @login_required
    def api_reviews_update():
        review = container.review_service.update_review(current_user(), get_json_body())
        return jsonify({"success": True, "review": review.to_dict()})

    @app.route("/api/reviews", methods=["DELETE"], endpoint="api_reviews_delete")
    @rate_limit("reviews-delete", 10, 15 * 60)
    @login_required
    def api_reviews_delete():
        container.review_service.delete_review(current_user(), request.args.get("id"))
        return jsonify({"success": True})

    @app.route("/api/admin/review-reply", methods=["POST"], endpoint="api_admin_review_reply")
    @rate_limit("review-reply", 20, 60)
    @staff_required
    def api_admin_review_reply():
        container.review_service.reply(current_user(), get_json_body(), ip_address=client_ip())
        return jsonify({"success": True})
