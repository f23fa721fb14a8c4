# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

# backend/givemarket/routes/orders.py
"""Order API routes. Ownership and admin checks live in order_service."""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import order_service
from ..validation import require_text
from ..decorators import require_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order_route():
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.create_order(
            g.current_user,
            data.get("total_amount_cents"),
            blockchain_tx_id=data.get("blockchain_tx_id"),
        )
        return jsonify({"order": order.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create order")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params: user_id (admin only), status, payment_status, page, per_page.
    Non-admin callers always get their own orders.
    """
    try:
        result = order_service.list_orders(
            g.current_user,
            user_id=request.args.get("user_id", type=int),
            status=request.args.get("status"),
            payment_status=request.args.get("payment_status"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list orders")


@orders_bp.get("/user/history")
@require_auth
def order_history_route():
    try:
        result = order_service.get_user_orders(
            g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load order history")


@orders_bp.get("/stats")
@require_auth
def order_stats_route():
    try:
        return jsonify(order_service.get_order_stats(g.current_user)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to compute order stats")


@orders_bp.get("/number/<order_number>")
@require_auth
def get_order_by_number_route(order_number: str):
    try:
        order = order_service.get_order_by_number(order_number, g.current_user)
        return jsonify({"order": order.to_dict(include_items=True)}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to get order")


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order_for(order_id, g.current_user)
        return jsonify({"order": order.to_dict(include_items=True)}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to get order")


@orders_bp.put("/<int:order_id>")
@require_auth
def update_order_route(order_id: int):
    """Admin partial update of total, status, payment status, tx id."""
    try:
        order_service.require_manager(g.current_user, order_id)
        payload = request.get_json(silent=True) or {}
        order = order_service.update_order(order_id, payload, g.current_user)
        return jsonify({"order": order.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update order")


@orders_bp.put("/<int:order_id>/payment-status")
@require_auth
def update_payment_status_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        payment_status = require_text(data, "payment_status")
        blockchain_tx_id = require_text(data, "blockchain_tx_id")
        order = order_service.update_payment_status(order_id, payment_status, blockchain_tx_id, g.current_user)
        return jsonify({"order": order.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update payment status")


@orders_bp.put("/<int:order_id>/cancel")
@require_auth
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(order_id, g.current_user)
        return jsonify({"order": order.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to cancel order")


@orders_bp.delete("/<int:order_id>")
@require_auth
def delete_order_route(order_id: int):
    try:
        order_service.remove_order(order_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete order")
