# Overview: Flask API routes for product ratings; parses input and returns JSON responses.

# backend/givemarket/routes/ratings.py
"""Product rating routes."""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import rating_service
from ..decorators import require_auth


ratings_bp = Blueprint("ratings", __name__, url_prefix="/api/ratings")


@ratings_bp.post("")
@require_auth
def create_rating_route():
    try:
        payload = request.get_json(silent=True) or {}
        rating = rating_service.create_rating(
            g.current_user,
            payload.get("product_id"),
            payload.get("value"),
        )
        return jsonify({"rating": rating.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create rating")


@ratings_bp.get("")
@require_auth
def list_ratings_route():
    try:
        result = rating_service.list_ratings(
            g.current_user,
            product_id=request.args.get("product_id"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list ratings")


@ratings_bp.get("/product/<int:product_id>/average")
def product_average_route(product_id: int):
    try:
        return jsonify(rating_service.get_product_average(product_id)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load rating average")


@ratings_bp.get("/product/<int:product_id>/user")
@require_auth
def user_rating_route(product_id: int):
    try:
        rating = rating_service.get_user_rating(product_id, g.current_user)
        return jsonify({"rating": rating.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load rating")


@ratings_bp.get("/<int:rating_id>")
@require_auth
def get_rating_route(rating_id: int):
    try:
        rating = rating_service.get_rating(rating_id, g.current_user)
        return jsonify({"rating": rating.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load rating")


@ratings_bp.patch("/<int:rating_id>")
@require_auth
def update_rating_route(rating_id: int):
    try:
        payload = request.get_json(silent=True) or {}
        rating = rating_service.update_rating(rating_id, payload.get("value"), g.current_user)
        return jsonify({"rating": rating.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update rating")


@ratings_bp.delete("/<int:rating_id>")
@require_auth
def delete_rating_route(rating_id: int):
    try:
        rating_service.remove_rating(rating_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete rating")
