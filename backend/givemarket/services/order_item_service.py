# Overview: Order line items; prices are snapshotted from the product at add time.

from __future__ import annotations

from ..extensions import db
from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..models import OrderItem, Product, User
from ..validation import coerce_int, coerce_positive_int
from .audit_service import append_audit_event
from .order_service import get_order
from .permission_service import is_admin, require


def _require_order_access(order, actor: User) -> None:
    require(actor, "order_item.manage", is_owner=order.user_id == actor.id,
            entity_type="order", entity_id=order.id)


def add_item(
    order_id: int,
    product_id: int,
    quantity,
    actor: User,
    donation_amount_cents=0,
) -> OrderItem:
    """
    Add a product line to a pending order.

    Raises:
        NotFoundError: order or product missing (soft-deleted counts as missing)
        NotAuthorizedError: actor neither owns the order nor is admin
        InvalidTransitionError: order is no longer pending
        ValidationError: quantity/donation amount invalid, product not purchasable
    """
    quantity = coerce_positive_int("quantity", quantity)
    donation = coerce_int("donation_amount_cents", donation_amount_cents or 0)
    if donation < 0:
        raise ValidationError("donation_amount_cents must be >= 0")

    order = get_order(order_id)
    _require_order_access(order, actor)
    if order.status != "pending":
        raise InvalidTransitionError(f"Cannot add items to an order in status {order.status}")

    product = db.session.get(Product, product_id)
    if not product or product.deleted_at is not None:
        raise NotFoundError("Product not found")
    if not product.is_purchasable:
        raise ValidationError("Product is not available for purchase")

    item = OrderItem(
        order_id=order.id,
        product_id=product.id,
        quantity=quantity,
        unit_price_cents=product.price_cents,
        donation_amount_cents=donation,
    )
    db.session.add(item)
    db.session.flush()
    append_audit_event(
        event_type="order.item_added",
        entity_type="order",
        entity_id=order.id,
        actor_user_id=actor.id,
        payload={
            "order_item_id": item.id,
            "product_id": product.id,
            "quantity": quantity,
            "unit_price_cents": product.price_cents,
        },
    )
    db.session.commit()
    return item


def remove_item(item_id: int, actor: User) -> None:
    """
    Remove a line. Owners may only change pending orders; admins may clear
    lines from an order in any status so the order itself can be deleted.
    """
    item = db.session.get(OrderItem, item_id)
    if not item:
        raise NotFoundError("Order item not found")

    order = item.order
    _require_order_access(order, actor)
    if order.status != "pending" and not is_admin(actor):
        raise InvalidTransitionError(f"Cannot remove items from an order in status {order.status}")

    append_audit_event(
        event_type="order.item_removed",
        entity_type="order",
        entity_id=order.id,
        actor_user_id=actor.id,
        payload={"order_item_id": item.id, "product_id": item.product_id},
    )
    db.session.delete(item)
    db.session.commit()


def list_items(order_id: int, actor: User) -> list[OrderItem]:
    order = get_order(order_id)
    require(actor, "order.view", is_owner=order.user_id == actor.id,
            entity_type="order", entity_id=order.id)
    return (
        db.session.query(OrderItem)
        .filter(OrderItem.order_id == order.id)
        .order_by(OrderItem.id.asc())
        .all()
    )
