# Overview: Order lifecycle: creation with unique order numbers, updates, cancellation.

"""
Orders Service

Order status and payment status move independently and are validated only
against their enums; the one guarded transition is cancellation
(ORDER_TRANSITIONS (pending, cancel) plus payment_status != "paid").

Order numbers look like ORD-<epoch ms>-<3 random digits>. A lookup avoids
most collisions; the unique constraint catches the rest and the insert is
retried with a fresh number, at most ORDER_NUMBER_MAX_ATTEMPTS times.
"""

from __future__ import annotations

import secrets
import time

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, HasDependentsError, InvalidTransitionError, NotFoundError
from ..models import Donation, Order, OrderItem, User
from ..pagination import paginate_query
from ..validation import ORDER_UPDATE_POLICY, coerce_positive_cents, enforce_rules_order, validate_payload
from .audit_service import append_audit_event
from .concurrency import lock_for_update, run_with_retry
from .lifecycle_service import (
    ORDER_STATUSES,
    ORDER_TRANSITIONS,
    PAYMENT_STATUSES,
    next_state,
    validate_choice,
)
from .permission_service import is_admin, require


def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{secrets.randbelow(1000):03d}"


def _order_number_exists(order_number: str) -> bool:
    return db.session.query(Order.id).filter(Order.order_number == order_number).first() is not None


def get_order(order_id: int, *, for_update: bool = False) -> Order:
    query = db.session.query(Order).filter(Order.id == order_id)
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def get_order_for(order_id: int, actor: User) -> Order:
    order = get_order(order_id)
    require(actor, "order.view", is_owner=order.user_id == actor.id,
            entity_type="order", entity_id=order.id)
    return order


def get_order_by_number(order_number: str, actor: User) -> Order:
    order = db.session.query(Order).filter(Order.order_number == order_number).first()
    if not order:
        raise NotFoundError("Order not found")
    require(actor, "order.view", is_owner=order.user_id == actor.id,
            entity_type="order", entity_id=order.id)
    return order


def create_order(user: User, total_amount_cents, blockchain_tx_id: str | None = None) -> Order:
    """
    Create a pending, unpaid order for `user`.

    Raises:
        ValidationError: total is not a positive integer
        ConflictError: no free order number after ORDER_NUMBER_MAX_ATTEMPTS
    """
    require(user, "order.create", entity_type="order")
    total = coerce_positive_cents("total_amount_cents", total_amount_cents)
    max_attempts = int(current_app.config.get("ORDER_NUMBER_MAX_ATTEMPTS", 5))

    for _attempt in range(max_attempts):
        order_number = generate_order_number()
        if _order_number_exists(order_number):
            continue

        order = Order(
            order_number=order_number,
            user_id=user.id,
            total_amount_cents=total,
            status="pending",
            payment_status="unpaid",
            blockchain_tx_id=(blockchain_tx_id or None),
        )
        db.session.add(order)
        try:
            db.session.flush()
        except IntegrityError:
            # Lost the race for this number; try a fresh one
            db.session.rollback()
            continue

        append_audit_event(
            event_type="order.created",
            entity_type="order",
            entity_id=order.id,
            actor_user_id=user.id,
            payload={"order_number": order.order_number, "total_amount_cents": total},
        )
        db.session.commit()
        return order

    raise ConflictError("Could not allocate a unique order number")


def update_order(order_id: int, patch: dict, actor: User) -> Order:
    """Partial update; enum values are validated but transitions are not guarded."""
    patch = validate_payload(model=Order, payload=patch, policy=ORDER_UPDATE_POLICY, partial=True)
    enforce_rules_order(patch)

    def _op():
        order = get_order(order_id, for_update=True)
        require(actor, "order.update", is_owner=order.user_id == actor.id,
                entity_type="order", entity_id=order.id)
        for key, value in patch.items():
            setattr(order, key, value)
        append_audit_event(
            event_type="order.updated",
            entity_type="order",
            entity_id=order.id,
            actor_user_id=actor.id,
            payload={k: patch[k] for k in sorted(patch)},
        )
        db.session.commit()
        return order

    return run_with_retry(_op)


def update_payment_status(order_id: int, payment_status: str, blockchain_tx_id: str | None, actor: User) -> Order:
    require(actor, "order.manage", entity_type="order", entity_id=order_id)
    validate_choice("payment_status", payment_status, PAYMENT_STATUSES)

    def _op():
        order = get_order(order_id, for_update=True)
        previous = order.payment_status
        order.payment_status = payment_status
        order.blockchain_tx_id = blockchain_tx_id
        append_audit_event(
            event_type="order.payment_status_changed",
            entity_type="order",
            entity_id=order.id,
            actor_user_id=actor.id,
            payload={"from": previous, "to": payment_status, "blockchain_tx_id": blockchain_tx_id},
        )
        db.session.commit()
        return order

    return run_with_retry(_op)


def cancel_order(order_id: int, actor: User) -> Order:
    """
    Cancel a pending order that has not been paid.

    Raises:
        InvalidTransitionError: order is not pending, or already paid
    """
    def _op():
        order = get_order(order_id, for_update=True)
        require(actor, "order.cancel", is_owner=order.user_id == actor.id,
                entity_type="order", entity_id=order.id)

        target = next_state(ORDER_TRANSITIONS, entity="order", current=order.status, action="cancel")
        if order.payment_status == "paid":
            raise InvalidTransitionError("Cannot cancel a paid order")

        previous = order.status
        order.status = target
        append_audit_event(
            event_type="order.cancelled",
            entity_type="order",
            entity_id=order.id,
            actor_user_id=actor.id,
            payload={"previous_status": previous},
        )
        db.session.commit()
        return order

    return run_with_retry(_op)


def remove_order(order_id: int, actor: User) -> None:
    require(actor, "order.manage", entity_type="order", entity_id=order_id)

    order = get_order(order_id)
    has_items = db.session.query(OrderItem.id).filter(OrderItem.order_id == order.id).first()
    has_donations = db.session.query(Donation.id).filter(Donation.order_id == order.id).first()
    if has_items or has_donations:
        raise HasDependentsError("Cannot delete order with items or donations")

    append_audit_event(
        event_type="order.deleted",
        entity_type="order",
        entity_id=order.id,
        actor_user_id=actor.id,
        payload={"order_number": order.order_number},
    )
    db.session.delete(order)
    db.session.commit()


def list_orders(
    actor: User,
    *,
    user_id: int | None = None,
    status: str | None = None,
    payment_status: str | None = None,
    page=None,
    per_page=None,
) -> dict:
    """
    Admins may list any user's orders; everyone else is pinned to their own.
    """
    if not is_admin(actor):
        if user_id is not None and user_id != actor.id:
            require(actor, "order.manage", entity_type="order")
        user_id = actor.id

    query = db.session.query(Order)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    if status:
        validate_choice("status", status, ORDER_STATUSES)
        query = query.filter(Order.status == status)
    if payment_status:
        validate_choice("payment_status", payment_status, PAYMENT_STATUSES)
        query = query.filter(Order.payment_status == payment_status)
    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate_query(query, page, per_page)


def get_user_orders(actor: User, page=None, per_page=None) -> dict:
    query = (
        db.session.query(Order)
        .filter(Order.user_id == actor.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return paginate_query(query, page, per_page)


def get_order_stats(actor: User) -> dict:
    require(actor, "order.manage", entity_type="order")

    by_status = dict(
        db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
    )
    by_payment = dict(
        db.session.query(Order.payment_status, func.count(Order.id)).group_by(Order.payment_status).all()
    )
    revenue = (
        db.session.query(func.coalesce(func.sum(Order.total_amount_cents), 0))
        .filter(Order.payment_status == "paid")
        .scalar()
    )
    return {
        "total_orders": sum(by_status.values()),
        "by_status": {s: by_status.get(s, 0) for s in sorted(ORDER_STATUSES)},
        "by_payment_status": {s: by_payment.get(s, 0) for s in sorted(PAYMENT_STATUSES)},
        "total_revenue_cents": int(revenue or 0),
    }


def require_manager(actor: User, order_id: int | None = None) -> None:
    """Admin-only order endpoints (PUT /api/orders/<id>)."""
    require(actor, "order.manage", entity_type="order", entity_id=order_id)
