from __future__ import annotations

import logging
from typing import Any, Dict

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from src.observability import increment_counter
from src.services.analytics_service import compute_order_analytics, resolve_timezone
from src.services.order_service import OrderService, toggle_sort
from src.services.pagination import parse_page
from src.services.product_service import (
    FETCH_FAILED_MESSAGE,
    NO_CHANGES_MESSAGE,
    NOT_FOUND_MESSAGE,
    UPDATE_FAILED_MESSAGE,
    ProductService,
)
from src.store import get_store

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")
logger = logging.getLogger(__name__)


def _order_service() -> OrderService:
    return OrderService(get_store(), current_app.config.get("ORDERS_PAGE_SIZE"))


def _product_service() -> ProductService:
    return ProductService(get_store(), current_app.config.get("PRODUCTS_PAGE_SIZE"))


def _product_form_payload(form) -> Dict[str, Any]:
    payload = form.to_dict()
    # Unchecked checkboxes are absent from the submission
    payload["isNew"] = "isNew" in form
    return payload


@dashboard_bp.route("", methods=["GET"])
def home():
    orders, error = _order_service().fetch_orders()
    analytics = compute_order_analytics(
        orders,
        tz=resolve_timezone(current_app.config.get("DEFAULT_TIMEZONE")),
        top_n=current_app.config.get("ANALYTICS_TOP_N", 5),
    )
    if error:
        flash(error, "error")
    return render_template("dashboard/home.html", analytics=analytics)


# ---------------------------------------------
# Products
# ---------------------------------------------

@dashboard_bp.route("/products", methods=["GET"])
def products():
    listing = _product_service().browse(parse_page(request.args.get("page")))
    if listing.get("error"):
        flash(listing["error"], "error")
    return render_template("dashboard/products.html", listing=listing)


@dashboard_bp.route("/products/<product_id>/edit", methods=["GET", "POST"])
def edit_product(product_id):
    service = _product_service()

    if request.method == "POST":
        success, message, _ = service.update_product(
            product_id, _product_form_payload(request.form)
        )
        if success:
            flash(message, "info" if message == NO_CHANGES_MESSAGE else "success")
            return redirect(url_for("dashboard.products"))
        if message in (NOT_FOUND_MESSAGE, FETCH_FAILED_MESSAGE):
            flash(message, "error")
            return redirect(url_for("dashboard.products"))

        flash(message, "error")
        status_code = 502 if message == UPDATE_FAILED_MESSAGE else 400
        current, _ = service.get_product(product_id)
        return render_template(
            "dashboard/product_edit.html",
            product=current or {"_id": product_id},
            form=request.form,
        ), status_code

    product, error = service.get_product(product_id)
    if product is None:
        flash(error, "error")
        return redirect(url_for("dashboard.products"))
    return render_template("dashboard/product_edit.html", product=product, form=None)


@dashboard_bp.route("/products/<product_id>/delete", methods=["GET", "POST"])
def delete_product(product_id):
    service = _product_service()

    if request.method == "POST":
        success, message = service.delete_product(product_id)
        flash(message, "success" if success else "error")
        return redirect(url_for("dashboard.products"))

    product, error = service.get_product(product_id)
    if product is None:
        flash(error, "error")
        return redirect(url_for("dashboard.products"))
    return render_template("dashboard/product_delete.html", product=product)


# ---------------------------------------------
# Orders
# ---------------------------------------------

@dashboard_bp.route("/orders", methods=["GET"])
def orders():
    listing = _order_service().browse(
        search=request.args.get("q"),
        sort_key=request.args.get("sort"),
        direction=request.args.get("direction"),
        page=parse_page(request.args.get("page")),
    )
    if listing.get("error"):
        flash(listing["error"], "error")

    filters = listing["filters_applied"]
    sort_links = {}
    for key in ("_createdAt", "orderId"):
        sort_key, direction = toggle_sort(filters["sort"], filters["direction"], key)
        sort_links[key] = url_for(
            "dashboard.orders",
            q=filters["search"] or None,
            sort=sort_key,
            direction=direction,
        )
    return render_template("dashboard/orders.html", listing=listing, sort_links=sort_links)


@dashboard_bp.route("/orders/<order_id>", methods=["GET"])
def order_detail(order_id):
    order, error = _order_service().get_order(order_id)
    if order is None:
        flash(error or "Order not found.", "error")
        return redirect(url_for("dashboard.orders"))
    return render_template("dashboard/order_detail.html", order=order)


# ---------------------------------------------
# Analytics
# ---------------------------------------------

@dashboard_bp.route("/analytics", methods=["GET"])
def analytics():
    orders, error = _order_service().fetch_orders()
    result = compute_order_analytics(
        orders,
        tz=resolve_timezone(current_app.config.get("DEFAULT_TIMEZONE")),
        top_n=current_app.config.get("ANALYTICS_TOP_N", 5),
    )
    increment_counter("analytics_runs_total", labels={"surface": "dashboard"})
    logger.debug(
        "Analytics computed: revenue=%s orders=%s",
        result.total_revenue,
        result.total_orders,
        extra={"order_count": len(orders)},
    )
    if error:
        flash(error, "error")
    return render_template(
        "dashboard/analytics.html",
        analytics=result,
        chart_data=result.to_dict(),
    )
