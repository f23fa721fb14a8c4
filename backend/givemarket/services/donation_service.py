# Overview: Donation ledger: creation, the single status transition point, queries.

"""
Donation Ledger

================================================================================
INVARIANT (strict, checked by `flask orgs check-balances`):
    For every organization O:
    O.total_received_cents == SUM(amount_cents) of donations with
                              organization_id = O.id, type = 'direct',
                              status = 'completed'
================================================================================

update_status is the only place a donation leaves `pending`. In one
transaction it:
    1. moves the row with a compare-and-swap UPDATE ... WHERE status='pending'
       (rowcount 0 means someone else already moved it)
    2. for a completed direct donation, increments the organization total
       with organization_service.increment_total_received
    3. appends audit events
    4. commits
Lock contention (OperationalError) and optimistic-lock conflicts are retried
by run_with_retry; on retry the CAS rejects a donation that was completed in
the meantime, so the increment is applied exactly once.

Purchase donations never touch total_received_cents.
"""

from __future__ import annotations

from sqlalchemy import func, update

from ..extensions import db
from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..models import Donation, Order, Organization, User
from ..pagination import paginate_query
from ..validation import coerce_positive_cents
from . import organization_service
from .audit_service import append_audit_event
from .concurrency import lock_for_update, run_with_retry
from .lifecycle_service import (
    DONATION_STATUSES,
    DONATION_TRANSITIONS,
    DONATION_TYPES,
    next_state,
    validate_choice,
)
from .permission_service import is_admin, require
from givemarket.time_utils import utcnow


def get_donation(donation_id: int) -> Donation:
    donation = db.session.get(Donation, donation_id)
    if not donation:
        raise NotFoundError("Donation not found")
    return donation


def get_donation_for(donation_id: int, actor: User) -> Donation:
    donation = get_donation(donation_id)
    require(actor, "donation.view", is_owner=donation.user_id == actor.id,
            entity_type="donation", entity_id=donation.id)
    return donation


def create_donation(
    user: User,
    organization_id: int,
    amount_cents,
    type: str,
    order_id: int | None = None,
    blockchain_tx_id: str | None = None,
) -> Donation:
    """
    Record a pending pledge. No money moves until update_status completes it.

    Raises:
        ValidationError: bad amount/type, purchase without order, direct with order
        NotFoundError: organization or order missing
        NotAuthorizedError: purchase order belongs to someone else
    """
    require(user, "donation.create", entity_type="donation")
    if not user.is_active:
        raise ValidationError("User account is not active")

    validate_choice("type", type, DONATION_TYPES)
    amount = coerce_positive_cents("amount_cents", amount_cents)

    if not db.session.get(Organization, organization_id):
        raise NotFoundError("Organization not found")

    if type == "purchase":
        if order_id is None:
            raise ValidationError("order_id is required for purchase donations")
        order = db.session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        require(user, "order.view", is_owner=order.user_id == user.id,
                entity_type="order", entity_id=order.id,
                message="Order does not belong to the donor")
    elif order_id is not None:
        raise ValidationError("order_id is not allowed for direct donations")

    donation = Donation(
        user_id=user.id,
        organization_id=organization_id,
        order_id=order_id,
        amount_cents=amount,
        type=type,
        status="pending",
        blockchain_tx_id=(blockchain_tx_id or None),
    )
    db.session.add(donation)
    db.session.flush()
    append_audit_event(
        event_type="donation.created",
        entity_type="donation",
        entity_id=donation.id,
        actor_user_id=user.id,
        payload={
            "organization_id": organization_id,
            "order_id": order_id,
            "type": type,
            "amount_cents": amount,
        },
    )
    db.session.commit()
    return donation


def update_status(
    donation_id: int,
    new_status: str,
    blockchain_tx_id: str | None = None,
    actor: User | None = None,
) -> Donation:
    """
    Move a pending donation to completed or failed.

    Raises:
        ValidationError: unknown status
        NotFoundError: no such donation
        InvalidTransitionError: donation is not pending (including a lost race)
    """
    validate_choice("status", new_status, DONATION_STATUSES)
    if actor is not None:
        require(actor, "donation.manage", entity_type="donation", entity_id=donation_id)

    def _op():
        donation = lock_for_update(db.session.query(Donation).filter(Donation.id == donation_id)).first()
        if not donation:
            raise NotFoundError("Donation not found")

        target = next_state(DONATION_TRANSITIONS, entity="donation", current=donation.status, action=new_status)

        now = utcnow()
        values = {"status": target, "updated_at": now}
        if blockchain_tx_id:
            values["blockchain_tx_id"] = blockchain_tx_id
        if target == "completed":
            values["completed_at"] = now

        result = db.session.execute(
            update(Donation)
            .where(Donation.id == donation_id, Donation.status == "pending")
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError("Donation is no longer pending")

        actor_id = actor.id if actor is not None else None
        if target == "completed" and donation.type == "direct":
            organization_service.increment_total_received(donation.organization_id, donation.amount_cents)
            append_audit_event(
                event_type="organization.balance_incremented",
                entity_type="organization",
                entity_id=donation.organization_id,
                actor_user_id=actor_id,
                payload={"donation_id": donation_id, "amount_cents": donation.amount_cents},
            )

        append_audit_event(
            event_type=f"donation.{target}",
            entity_type="donation",
            entity_id=donation_id,
            actor_user_id=actor_id,
            payload={"blockchain_tx_id": blockchain_tx_id, "type": donation.type},
        )
        db.session.commit()
        return donation

    return run_with_retry(_op)


def confirm_blockchain_transaction(donation_id: int, blockchain_tx_id: str | None, actor: User | None = None) -> Donation:
    if not isinstance(blockchain_tx_id, str) or not blockchain_tx_id.strip():
        raise ValidationError("Blockchain transaction ID is required")
    if actor is not None:
        require(actor, "donation.manage", entity_type="donation", entity_id=donation_id)

    donation = get_donation(donation_id)
    if donation.status != "pending":
        raise InvalidTransitionError("Only pending donations can be confirmed")

    return update_status(donation_id, "completed", blockchain_tx_id.strip(), actor=actor)


def remove_donation(donation_id: int, actor: User) -> None:
    require(actor, "donation.manage", entity_type="donation", entity_id=donation_id)

    donation = get_donation(donation_id)
    if donation.status != "pending":
        raise InvalidTransitionError("Only pending donations can be removed")

    append_audit_event(
        event_type="donation.deleted",
        entity_type="donation",
        entity_id=donation.id,
        actor_user_id=actor.id,
        payload={"amount_cents": donation.amount_cents, "type": donation.type},
    )
    db.session.delete(donation)
    db.session.commit()


def list_donations(
    actor: User,
    *,
    user_id: int | None = None,
    organization_id: int | None = None,
    status: str | None = None,
    type: str | None = None,
    page=None,
    per_page=None,
) -> dict:
    """Admins may filter by any user; everyone else is pinned to their own."""
    if not is_admin(actor):
        if user_id is not None and user_id != actor.id:
            require(actor, "donation.manage", entity_type="donation")
        user_id = actor.id

    query = db.session.query(Donation)
    if user_id is not None:
        query = query.filter(Donation.user_id == user_id)
    if organization_id is not None:
        query = query.filter(Donation.organization_id == organization_id)
    if status:
        validate_choice("status", status, DONATION_STATUSES)
        query = query.filter(Donation.status == status)
    if type:
        validate_choice("type", type, DONATION_TYPES)
        query = query.filter(Donation.type == type)
    query = query.order_by(Donation.created_at.desc(), Donation.id.desc())
    return paginate_query(query, page, per_page)


def get_user_donations(actor: User, page=None, per_page=None) -> dict:
    query = (
        db.session.query(Donation)
        .filter(Donation.user_id == actor.id)
        .order_by(Donation.created_at.desc(), Donation.id.desc())
    )
    return paginate_query(query, page, per_page)


def get_organization_donations(organization_id: int, actor: User, page=None, per_page=None) -> dict:
    require(actor, "donation.manage", entity_type="organization", entity_id=organization_id)
    organization_service.get_organization(organization_id)
    query = (
        db.session.query(Donation)
        .filter(Donation.organization_id == organization_id)
        .order_by(Donation.created_at.desc(), Donation.id.desc())
    )
    return paginate_query(query, page, per_page)


def get_organization_stats(organization_id: int) -> dict:
    org = organization_service.get_organization(organization_id)

    by_status = dict(
        db.session.query(Donation.status, func.count(Donation.id))
        .filter(Donation.organization_id == org.id)
        .group_by(Donation.status)
        .all()
    )
    completed_amount = (
        db.session.query(func.coalesce(func.sum(Donation.amount_cents), 0))
        .filter(Donation.organization_id == org.id, Donation.status == "completed")
        .scalar()
    )
    completed_direct_amount = (
        db.session.query(func.coalesce(func.sum(Donation.amount_cents), 0))
        .filter(
            Donation.organization_id == org.id,
            Donation.status == "completed",
            Donation.type == "direct",
        )
        .scalar()
    )
    completed_direct_amount = int(completed_direct_amount or 0)

    return {
        "organization_id": org.id,
        "total_donations": sum(by_status.values()),
        "completed_donations": by_status.get("completed", 0),
        "pending_donations": by_status.get("pending", 0),
        "failed_donations": by_status.get("failed", 0),
        "completed_amount_cents": int(completed_amount or 0),
        "completed_direct_amount_cents": completed_direct_amount,
        "total_received_cents": org.total_received_cents,
        "balance_consistent": org.total_received_cents == completed_direct_amount,
    }
