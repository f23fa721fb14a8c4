# Overview: Explicit authorization checks with denial logging.

"""
Authorization checks for handlers and services.

The decision itself is the pure `permissions.can(role, action, is_owner)`.
This module wraps it for call sites that hold a User: `require` raises
NotAuthorizedError and records the denial in the audit trail.

DESIGN PRINCIPLES:
- Fail closed: unknown roles/actions are denied
- Log denials only: grants are not logged
- Checks run before any mutation, so recording a denial never commits
  half-applied domain changes
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotAuthorizedError
from ..models import User
from ..permissions import can, ROLE_ADMIN
from .audit_service import append_audit_event


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == ROLE_ADMIN


def user_can(user: User | None, action: str, *, is_owner: bool = False) -> bool:
    if user is None or not user.is_active:
        return False
    return can(user.role, action, is_owner)


def require(
    user: User | None,
    action: str,
    *,
    is_owner: bool = False,
    entity_type: str | None = None,
    entity_id: int | None = None,
    message: str | None = None,
) -> None:
    """
    Require `user` to be allowed `action`; raise NotAuthorizedError if not.

    Usage:
        require(g.current_user, "product.review")
        require(actor, "order.cancel", is_owner=order.user_id == actor.id,
                entity_type="order", entity_id=order.id)
    """
    if user_can(user, action, is_owner=is_owner):
        return

    user_id = user.id if user is not None else None
    role = user.role if user is not None else None
    current_app.logger.warning(
        "Permission denied: user=%s role=%s action=%s entity=%s:%s",
        user_id, role, action, entity_type, entity_id,
    )
    append_audit_event(
        event_type="security.permission_denied",
        entity_type=entity_type or "action",
        entity_id=entity_id,
        actor_user_id=user_id,
        note=f"Denied {action} for role {role}",
        payload={"action": action, "role": role, "is_owner": bool(is_owner)},
    )
    db.session.commit()
    raise NotAuthorizedError(message or f"Not authorized: {action}")
