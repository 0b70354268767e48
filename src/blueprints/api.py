from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from src.observability import increment_counter
from src.services.analytics_service import compute_order_analytics, resolve_timezone
from src.services.order_service import OrderService
from src.services.pagination import parse_page
from src.services.product_service import (
    DELETE_FAILED_MESSAGE,
    FETCH_FAILED_MESSAGE as PRODUCTS_FETCH_FAILED,
    NOT_FOUND_MESSAGE,
    UPDATE_FAILED_MESSAGE,
    ProductService,
)
from src.store import get_store

api_bp = Blueprint("api", __name__, url_prefix="/api")
logger = logging.getLogger(__name__)

# Store-side failures surface as a bad gateway rather than a client error
UPSTREAM_FAILURES = {PRODUCTS_FETCH_FAILED, UPDATE_FAILED_MESSAGE, DELETE_FAILED_MESSAGE}


def _status_for(success: bool, message: str) -> int:
    if success:
        return 200
    if message == NOT_FOUND_MESSAGE:
        return 404
    if message in UPSTREAM_FAILURES:
        return 502
    return 400


def _order_service() -> OrderService:
    return OrderService(get_store(), current_app.config.get("ORDERS_PAGE_SIZE"))


def _product_service() -> ProductService:
    return ProductService(get_store(), current_app.config.get("PRODUCTS_PAGE_SIZE"))


@api_bp.route("/orders", methods=["GET"])
def list_orders():
    listing = _order_service().browse(
        search=request.args.get("q"),
        sort_key=request.args.get("sort"),
        direction=request.args.get("direction"),
        page=parse_page(request.args.get("page")),
    )
    return jsonify(listing)


@api_bp.route("/products", methods=["GET"])
def list_products():
    listing = _product_service().browse(parse_page(request.args.get("page")))
    return jsonify(listing)


@api_bp.route("/products/<product_id>", methods=["GET"])
def get_product(product_id):
    product, error = _product_service().get_product(product_id)
    if product is None:
        return jsonify({"error": error}), _status_for(False, error)
    return jsonify({"product": product})


@api_bp.route("/products/<product_id>", methods=["PATCH"])
def update_product(product_id):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "A JSON object is required"}), 400

    success, message, product = _product_service().update_product(product_id, payload)
    status_code = _status_for(success, message)
    if not success:
        return jsonify({"error": message}), status_code
    return jsonify({"message": message, "product": product}), status_code


@api_bp.route("/products/<product_id>", methods=["DELETE"])
def delete_product(product_id):
    success, message = _product_service().delete_product(product_id)
    status_code = _status_for(success, message)
    if not success:
        return jsonify({"error": message}), status_code
    return jsonify({"message": message}), status_code


@api_bp.route("/analytics", methods=["GET"])
def analytics():
    orders, error = _order_service().fetch_orders()
    result = compute_order_analytics(
        orders,
        tz=resolve_timezone(current_app.config.get("DEFAULT_TIMEZONE")),
        top_n=current_app.config.get("ANALYTICS_TOP_N", 5),
    )
    increment_counter("analytics_runs_total", labels={"surface": "api"})
    logger.debug("Analytics served", extra={"order_count": len(orders)})
    body = result.to_dict()
    if error:
        body["error"] = error
    return jsonify(body)
