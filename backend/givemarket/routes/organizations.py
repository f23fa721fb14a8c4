# Overview: Flask API routes for organizations; parses input and returns JSON responses.

# backend/givemarket/routes/organizations.py
"""Organization registry and verification routes."""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import organization_service
from ..validation import parse_bool_arg
from ..decorators import require_auth


organizations_bp = Blueprint("organizations", __name__, url_prefix="/api/organizations")


@organizations_bp.post("")
@require_auth
def create_organization_route():
    try:
        payload = request.get_json(silent=True) or {}
        org = organization_service.create_organization(payload, g.current_user)
        return jsonify({"organization": org.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create organization")


@organizations_bp.get("")
def list_organizations_route():
    try:
        result = organization_service.list_organizations(
            is_verified=parse_bool_arg(request.args.get("is_verified")),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list organizations")


@organizations_bp.get("/verified")
def list_verified_organizations_route():
    try:
        result = organization_service.list_verified(
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list verified organizations")


@organizations_bp.get("/pending")
@require_auth
def list_pending_organizations_route():
    try:
        result = organization_service.list_pending(
            g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list pending organizations")


@organizations_bp.get("/<int:organization_id>")
def get_organization_route(organization_id: int):
    try:
        org = organization_service.get_organization(organization_id)
        return jsonify({"organization": org.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to get organization")


@organizations_bp.put("/<int:organization_id>")
@require_auth
def update_organization_route(organization_id: int):
    try:
        payload = request.get_json(silent=True) or {}
        org = organization_service.update_organization(organization_id, payload, g.current_user)
        return jsonify({"organization": org.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update organization")


@organizations_bp.delete("/<int:organization_id>")
@require_auth
def delete_organization_route(organization_id: int):
    try:
        organization_service.remove_organization(organization_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete organization")


@organizations_bp.put("/<int:organization_id>/verify")
@require_auth
def verify_organization_route(organization_id: int):
    try:
        org = organization_service.verify(organization_id, g.current_user)
        return jsonify({"organization": org.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to verify organization")


@organizations_bp.put("/<int:organization_id>/reject")
@require_auth
def reject_organization_route(organization_id: int):
    try:
        data = request.get_json(silent=True) or {}
        org = organization_service.reject(organization_id, g.current_user, data.get("rejection_reason"))
        return jsonify({"organization": org.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to reject organization")
