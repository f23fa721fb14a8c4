# Overview: Flask API routes for order items; parses input and returns JSON responses.

# backend/givemarket/routes/order_items.py
"""Order item routes. Items can only be added to or removed from pending orders."""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError, ValidationError
from ..responses import error_response, server_error
from ..services import order_item_service
from ..decorators import require_auth


order_items_bp = Blueprint("order_items", __name__, url_prefix="/api/order-items")


@order_items_bp.post("")
@require_auth
def add_order_item_route():
    try:
        data = request.get_json(silent=True) or {}
        order_id = data.get("order_id")
        product_id = data.get("product_id")
        quantity = data.get("quantity")

        if not all([order_id, product_id, quantity]):
            raise ValidationError("order_id, product_id and quantity required")

        item = order_item_service.add_item(
            order_id,
            product_id,
            quantity,
            g.current_user,
            donation_amount_cents=data.get("donation_amount_cents", 0),
        )
        return jsonify({"order_item": item.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to add order item")


@order_items_bp.get("/by-order/<int:order_id>")
@require_auth
def list_order_items_route(order_id: int):
    try:
        items = order_item_service.list_items(order_id, g.current_user)
        return jsonify({"items": [i.to_dict() for i in items], "count": len(items)}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list order items")


@order_items_bp.delete("/<int:item_id>")
@require_auth
def delete_order_item_route(item_id: int):
    try:
        order_item_service.remove_item(item_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete order item")
