# Overview: Transition tables for the product, order, donation and organization state machines.

"""
GiveMarket Lifecycle Tables

================================================================================
PURPOSE: One explicit (state, action) -> state table per entity
================================================================================

Every service that changes a status asks this module for the next state.
A pair that is missing from a table is an invalid transition, full stop:
there is no implicit no-op and no fallback.

PRODUCT:
    draft ----submit----> pending_approval ----approve----> approved
    rejected --submit--/                  \\---reject-----> rejected
    approved --edit--> draft, rejected --edit--> draft
    draft/rejected --delete--> (soft-deleted)
    suspended: reserved, no inbound or outbound transitions

ORDER:
    pending --cancel--> cancelled   (caller also checks payment_status != paid)

DONATION:
    pending --completed--> completed
    pending --failed-----> failed
    completed and failed are terminal

ORGANIZATION (derived verification state):
    pending --verify--> verified, pending --reject--> rejected
    verified --reject--> rejected (revocation), rejected --verify--> verified

================================================================================
"""

from __future__ import annotations

from ..errors import InvalidTransitionError, ValidationError


# Product approval
PRODUCT_STATUSES = {"draft", "pending_approval", "approved", "rejected", "suspended"}
PRODUCT_SOFT_DELETED = "deleted"

PRODUCT_TRANSITIONS: dict[tuple[str, str], str] = {
    ("draft", "submit"): "pending_approval",
    ("rejected", "submit"): "pending_approval",
    ("pending_approval", "approve"): "approved",
    ("pending_approval", "reject"): "rejected",
    ("approved", "toggle_activation"): "approved",
    ("draft", "edit"): "draft",
    ("rejected", "edit"): "draft",
    ("approved", "edit"): "draft",
    ("pending_approval", "edit"): "pending_approval",
    ("draft", "delete"): PRODUCT_SOFT_DELETED,
    ("rejected", "delete"): PRODUCT_SOFT_DELETED,
}

# Orders
ORDER_STATUSES = {"pending", "shipped", "completed", "cancelled"}
PAYMENT_STATUSES = {"unpaid", "paid", "refunded", "failed"}

ORDER_TRANSITIONS: dict[tuple[str, str], str] = {
    ("pending", "cancel"): "cancelled",
}

# Donations
DONATION_TYPES = {"purchase", "direct"}
DONATION_STATUSES = {"pending", "completed", "failed"}

DONATION_TRANSITIONS: dict[tuple[str, str], str] = {
    ("pending", "completed"): "completed",
    ("pending", "failed"): "failed",
}

# Organization verification
ORGANIZATION_VERIFICATION_STATES = {"pending", "verified", "rejected"}

ORGANIZATION_TRANSITIONS: dict[tuple[str, str], str] = {
    ("pending", "verify"): "verified",
    ("pending", "reject"): "rejected",
    ("verified", "reject"): "rejected",
    ("rejected", "verify"): "verified",
}


def validate_choice(field: str, value, choices: set[str]) -> str:
    """Raise ValidationError unless value is one of choices."""
    if value not in choices:
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {', '.join(sorted(choices))}"
        )
    return value


def can_transition(table: dict[tuple[str, str], str], current: str, action: str) -> bool:
    return (current, action) in table


def next_state(
    table: dict[tuple[str, str], str],
    *,
    entity: str,
    current: str,
    action: str,
) -> str:
    """
    Look up the target state for (current, action).

    Raises:
        InvalidTransitionError: the pair is not in the table
    """
    try:
        return table[(current, action)]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot {action.replace('_', ' ')} {entity} in status {current}"
        ) from None
