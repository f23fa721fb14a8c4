# Overview: Domain error taxonomy shared by services and routes.

"""
Every failure a caller can act on is raised as a DomainError subclass with a
stable `kind` and an HTTP status. Routes translate them with `to_dict()`;
nothing below this layer knows about HTTP beyond the status number.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for structured, caller-facing errors."""

    kind = "domain_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.kind.replace("_", " "))
        self.message = message or self.kind.replace("_", " ")

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class NotFoundError(DomainError):
    """Missing entity by id (or soft-deleted)."""

    kind = "not_found"
    status_code = 404


class InvalidTransitionError(DomainError):
    """
    A state machine guard failed: approving a non-pending product, cancelling
    a paid order, confirming a donation that is no longer pending.
    """

    kind = "invalid_transition"
    status_code = 400


class NotAuthorizedError(DomainError):
    """Role or ownership check failed."""

    kind = "not_authorized"
    status_code = 403


class ConflictError(DomainError):
    """409-level business rule conflict (e.g., duplicate organization name)."""

    kind = "conflict"
    status_code = 409


class HasDependentsError(DomainError):
    """Delete blocked by foreign references."""

    kind = "has_dependents"
    status_code = 409


class ValidationError(DomainError):
    """400-level input problem."""

    kind = "validation_error"
    status_code = 400
