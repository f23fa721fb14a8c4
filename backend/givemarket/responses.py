# Overview: JSON error responses shared by the route modules.

from flask import current_app, jsonify

from .errors import DomainError


def error_response(e: DomainError):
    return jsonify(e.to_dict()), e.status_code


def server_error(message: str):
    """Log the active exception with traceback and return a generic 500."""
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500
