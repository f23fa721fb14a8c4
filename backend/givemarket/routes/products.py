# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/givemarket/routes/products.py
"""
Product catalog and approval workflow routes.

Public: /public, /search, /seller/<id>, /<id> (approved and active only,
unless the caller is the owning seller or an admin).
Everything else requires authentication; role and ownership checks happen
in product_service through permission_service.require.
"""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import product_service
from ..validation import parse_bool_arg
from ..decorators import optional_auth, require_auth

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a product in draft for a seller (admin only)."""
    try:
        payload = request.get_json(silent=True) or {}
        product = product_service.create_product(payload, g.current_user)
        return jsonify({"product": product.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create product")


@products_bp.patch("/<int:product_id>/submit")
@require_auth
def submit_product_route(product_id: int):
    try:
        product = product_service.submit_for_approval(product_id, g.current_user)
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to submit product")


@products_bp.put("/<int:product_id>/approve")
@require_auth
def approve_product_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        product = product_service.approve(product_id, g.current_user, note=data.get("note"))
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to approve product")


@products_bp.put("/<int:product_id>/reject")
@require_auth
def reject_product_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        product = product_service.reject(product_id, g.current_user, data.get("reason"))
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to reject product")


@products_bp.put("/<int:product_id>/toggle-activation")
@require_auth
def toggle_activation_route(product_id: int):
    try:
        product = product_service.toggle_activation(product_id, g.current_user)
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to toggle product activation")


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Edit catalog fields (admin, or owning seller while draft/rejected)."""
    try:
        payload = request.get_json(silent=True) or {}
        product = product_service.edit(product_id, payload, g.current_user)
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update product")


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Soft delete (draft or rejected only)."""
    try:
        product_service.delete(product_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete product")


@products_bp.delete("/hard-delete/<int:product_id>")
@require_auth
def hard_delete_product_route(product_id: int):
    try:
        product_service.hard_delete(product_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to hard delete product")


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Admin listing.

    Query params:
    - seller_id, organization_id: int (optional)
    - approval_status: draft | pending_approval | approved | rejected | suspended
    - is_active: true/false
    - min_price_cents, max_price_cents: int
    - page, per_page
    """
    try:
        result = product_service.list_products(
            g.current_user,
            seller_id=request.args.get("seller_id", type=int),
            organization_id=request.args.get("organization_id", type=int),
            approval_status=request.args.get("approval_status"),
            is_active=parse_bool_arg(request.args.get("is_active")),
            min_price_cents=request.args.get("min_price_cents", type=int),
            max_price_cents=request.args.get("max_price_cents", type=int),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list products")


@products_bp.get("/public")
def list_public_products_route():
    try:
        result = product_service.list_public_products(
            organization_id=request.args.get("organization_id", type=int),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list public products")


@products_bp.get("/search")
def search_products_route():
    try:
        result = product_service.search_products(
            request.args.get("q"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to search products")


@products_bp.get("/seller/<int:seller_id>")
@optional_auth
def list_seller_products_route(seller_id: int):
    try:
        result = product_service.list_seller_products(
            seller_id,
            viewer=g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list seller products")


@products_bp.get("/status/<status>")
@require_auth
def list_products_by_status_route(status: str):
    try:
        result = product_service.list_by_status(
            status,
            g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list products by status")


@products_bp.get("/statistics/admin")
@require_auth
def product_statistics_route():
    try:
        return jsonify(product_service.get_admin_statistics(g.current_user)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to compute product statistics")


@products_bp.get("/<int:product_id>")
@optional_auth
def get_product_route(product_id: int):
    try:
        product = product_service.get_product(product_id, viewer=g.current_user)
        return jsonify({"product": product.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to get product")
