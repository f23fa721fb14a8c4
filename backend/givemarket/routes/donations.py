# Overview: Flask API routes for donations operations; parses input and returns JSON responses.

# backend/givemarket/routes/donations.py
"""
Donation API routes.

Status changes (PUT /<id>/status, PUT /<id>/confirm) are admin only and go
through donation_service.update_status, the single transition point that
also maintains the organization's total_received_cents.
"""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError, ValidationError
from ..pagination import serialize_page
from ..responses import error_response, server_error
from ..services import donation_service
from ..validation import require_text
from ..decorators import require_auth


donations_bp = Blueprint("donations", __name__, url_prefix="/api/donations")


@donations_bp.post("")
@require_auth
def create_donation_route():
    try:
        data = request.get_json(silent=True) or {}
        organization_id = data.get("organization_id")
        if organization_id is None:
            raise ValidationError("organization_id is required")

        donation = donation_service.create_donation(
            g.current_user,
            organization_id,
            data.get("amount_cents"),
            data.get("type"),
            order_id=data.get("order_id"),
            blockchain_tx_id=data.get("blockchain_tx_id"),
        )
        return jsonify({"donation": donation.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to create donation")


@donations_bp.get("")
@require_auth
def list_donations_route():
    """
    Query params: user_id (admin only), organization_id, status, type,
    page, per_page. Non-admin callers always get their own donations.
    """
    try:
        result = donation_service.list_donations(
            g.current_user,
            user_id=request.args.get("user_id", type=int),
            organization_id=request.args.get("organization_id", type=int),
            status=request.args.get("status"),
            type=request.args.get("type"),
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list donations")


@donations_bp.get("/user/history")
@require_auth
def donation_history_route():
    try:
        result = donation_service.get_user_donations(
            g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to load donation history")


@donations_bp.get("/organization/<int:organization_id>")
@require_auth
def organization_donations_route(organization_id: int):
    try:
        result = donation_service.get_organization_donations(
            organization_id,
            g.current_user,
            page=request.args.get("page"),
            per_page=request.args.get("per_page"),
        )
        return jsonify(serialize_page(result)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to list organization donations")


@donations_bp.get("/organization/<int:organization_id>/stats")
def organization_donation_stats_route(organization_id: int):
    """Public transparency figures for an organization."""
    try:
        return jsonify(donation_service.get_organization_stats(organization_id)), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to compute organization donation stats")


@donations_bp.get("/<int:donation_id>")
@require_auth
def get_donation_route(donation_id: int):
    try:
        donation = donation_service.get_donation_for(donation_id, g.current_user)
        return jsonify({"donation": donation.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to get donation")


@donations_bp.put("/<int:donation_id>/status")
@require_auth
def update_donation_status_route(donation_id: int):
    try:
        data = request.get_json(silent=True) or {}
        status = require_text(data, "status")
        donation = donation_service.update_status(
            donation_id,
            status,
            blockchain_tx_id=data.get("blockchain_tx_id"),
            actor=g.current_user,
        )
        return jsonify({"donation": donation.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to update donation status")


@donations_bp.put("/<int:donation_id>/confirm")
@require_auth
def confirm_donation_route(donation_id: int):
    try:
        data = request.get_json(silent=True) or {}
        tx_id = data.get("blockchainTxId") or data.get("blockchain_tx_id")
        donation = donation_service.confirm_blockchain_transaction(donation_id, tx_id, actor=g.current_user)
        return jsonify({"donation": donation.to_dict()}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to confirm donation")


@donations_bp.delete("/<int:donation_id>")
@require_auth
def delete_donation_route(donation_id: int):
    try:
        donation_service.remove_donation(donation_id, g.current_user)
        return jsonify({"ok": True}), 200
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to delete donation")
