# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/givemarket/routes/auth.py
"""
Authentication API routes

- Self-registration creates customer accounts only; sellers and admins are
  created by an administrator (CLI: flask users create)
- Session management with opaque bearer tokens
"""

from flask import Blueprint, g, jsonify, request

from ..errors import DomainError
from ..responses import error_response, server_error
from ..permissions import ROLE_CUSTOMER
from ..services import auth_service, session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            role=ROLE_CUSTOMER,
            full_name=data.get("full_name"),
        )
        return jsonify({"user": user.to_dict()}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to register user")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required", "kind": "validation_error"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials", "kind": "not_authenticated"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except DomainError as e:
        return error_response(e)
    except Exception:
        return server_error("Failed to login user")


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.session_token)
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        return server_error("Failed to logout user")


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({"user": {"id": user.id, "email": user.email, "role": user.role,
                             "full_name": user.full_name}}), 200
