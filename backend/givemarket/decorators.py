# Overview: Request authentication decorators for API routes.

"""
Authentication only. Role and ownership checks are not decorators: handlers
and services call permission_service.require() with the loaded entity so
ownership can be taken into account.
"""

from functools import wraps

from flask import g, jsonify, request

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token; sets g.current_user.

    Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "kind": "not_authenticated"}), 401

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"error": "Invalid or expired token", "kind": "not_authenticated"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Like require_auth for public endpoints: anonymous callers get
    g.current_user = None, but a token that is present must be valid.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        g.current_user = None
        if token:
            user = session_service.validate_session(token)
            if not user:
                return jsonify({"error": "Invalid or expired token", "kind": "not_authenticated"}), 401
            g.current_user = user
            g.session_token = token
        return f(*args, **kwargs)

    return decorated_function
