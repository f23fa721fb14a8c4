# Overview: Flask API routes for product comments; parses input and returns JSON responses.

# backend/givemarket/routes/comments.py
"""Product comment routes. Reading is public; writing needs a customer session."""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import comment_service
from ..decorators import require_auth


comments_bp = Blueprint("comments", __name__, url_prefix="/api/comments")


@comments_bp.post("")
@require_auth
def create_comment_route():
    try:
        payload = request.get_json(silent=True) or {}
        comment = comment_service.create_comment(
            g.current_user,
            payload.get("product_id"),
            payload.get("content"),
        )
        return jsonify({"comment": comment.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create comment")


@comments_bp.get("")
def list_comments_route():
    try:
        result = comment_service.list_comments(
            product_id=request.args.get("product_id"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list comments")


@comments_bp.get("/<int:comment_id>")
def get_comment_route(comment_id: int):
    try:
        comment = comment_service.get_comment(comment_id)
        return jsonify({"comment": comment.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load comment")


@comments_bp.put("/<int:comment_id>")
@require_auth
def update_comment_route(comment_id: int):
    try:
        payload = request.get_json(silent=True) or {}
        comment = comment_service.update_comment(comment_id, payload.get("content"), g.current_user)
        return jsonify({"comment": comment.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update comment")


@comments_bp.delete("/<int:comment_id>")
@require_auth
def delete_comment_route(comment_id: int):
    try:
        comment_service.remove_comment(comment_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete comment")
