# Overview: Product approval workflow and catalog queries.

"""
Products Service

Every status change goes through lifecycle_service.PRODUCT_TRANSITIONS;
this module only adds the side effects of each transition (flags, stamps,
reasons) and the audit event. Soft-deleted products behave as missing for
every operation except hard_delete.

INVARIANT: is_active or is_approved implies approval_status == "approved".
"""

from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from ..models import Comment, OrderItem, Organization, Product, Rating, User
from ..pagination import paginate_query
from ..permissions import ROLE_SELLER
from ..validation import (
    PRODUCT_CREATE_POLICY,
    PRODUCT_EDIT_POLICY,
    enforce_rules_product,
    validate_payload,
)
from .audit_service import append_audit_event
from .concurrency import lock_for_update, run_with_retry
from .lifecycle_service import PRODUCT_STATUSES, PRODUCT_TRANSITIONS, next_state, validate_choice
from .permission_service import is_admin, require, user_can
from givemarket.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "organization_id", "name_en", "name_ar",
    "description_en", "description_ar", "price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _get_live_product(product_id: int, *, for_update: bool = False) -> Product:
    query = db.session.query(Product).filter(Product.id == product_id, Product.deleted_at.is_(None))
    if for_update:
        query = lock_for_update(query)
    product = query.first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _ensure_unique_name(seller_id: int, name_en: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(
        Product.seller_id == seller_id,
        func.lower(Product.name_en) == name_en.lower(),
        Product.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Seller already has a product with this name")


def _ensure_organization(organization_id: int | None) -> None:
    if organization_id is None:
        return
    if not db.session.get(Organization, organization_id):
        raise NotFoundError("Organization not found")


def _record(event_type: str, product: Product, actor: User, note: str | None = None, **payload) -> None:
    append_audit_event(
        event_type=event_type,
        entity_type="product",
        entity_id=product.id,
        actor_user_id=actor.id if actor else None,
        note=note,
        payload=payload or None,
    )


def create_product(patch: dict, creator: User) -> Product:
    """
    Create a product in draft on behalf of a seller.

    Raises:
        NotAuthorizedError: creator is not an admin
        ValidationError: bad payload, seller_id not an active seller
        ConflictError: the seller already has a product with this name
    """
    require(creator, "product.create", entity_type="product")

    patch = validate_payload(model=Product, payload=patch, policy=PRODUCT_CREATE_POLICY, partial=False)
    enforce_rules_product(patch)

    seller = db.session.get(User, patch["seller_id"])
    if not seller or not seller.is_active or seller.role != ROLE_SELLER:
        raise ValidationError("seller_id must reference an active seller")
    _ensure_organization(patch.get("organization_id"))
    _ensure_unique_name(seller.id, patch["name_en"])

    def _op():
        p = Product(
            seller_id=seller.id,
            creator_id=creator.id,
            approval_status="draft",
            is_active=False,
            is_approved=False,
        )
        apply_product_patch(p, patch)
        db.session.add(p)
        db.session.flush()  # ensure p.id exists before the audit append
        _record("product.created", p, creator, note=f"Created product name_en={p.name_en}")
        db.session.commit()
        return p

    return run_with_retry(_op)


def submit_for_approval(product_id: int, actor: User) -> Product:
    def _op():
        p = _get_live_product(product_id, for_update=True)
        require(actor, "product.submit", is_owner=p.seller_id == actor.id,
                entity_type="product", entity_id=p.id)

        previous = p.approval_status
        p.approval_status = next_state(PRODUCT_TRANSITIONS, entity="product", current=previous, action="submit")
        p.rejection_reason = None
        _record("product.submitted", p, actor, previous_status=previous)
        db.session.commit()
        return p

    return run_with_retry(_op)


def approve(product_id: int, admin: User, note: str | None = None) -> Product:
    require(admin, "product.review", entity_type="product", entity_id=product_id)

    def _op():
        p = _get_live_product(product_id, for_update=True)
        p.approval_status = next_state(PRODUCT_TRANSITIONS, entity="product", current=p.approval_status, action="approve")
        p.is_approved = True
        p.is_active = True
        p.approved_by = admin.id
        p.approved_at = utcnow()
        p.rejection_reason = None
        p.approval_note = note.strip() if isinstance(note, str) and note.strip() else None
        _record("product.approved", p, admin, note=p.approval_note)
        db.session.commit()
        return p

    return run_with_retry(_op)


def reject(product_id: int, admin: User, reason: str | None) -> Product:
    require(admin, "product.review", entity_type="product", entity_id=product_id)

    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError("Rejection reason is required")
    reason = reason.strip()

    def _op():
        p = _get_live_product(product_id, for_update=True)
        p.approval_status = next_state(PRODUCT_TRANSITIONS, entity="product", current=p.approval_status, action="reject")
        p.is_approved = False
        p.is_active = False
        p.rejection_reason = reason
        p.approved_by = None
        p.approved_at = None
        p.approval_note = None
        _record("product.rejected", p, admin, note=reason)
        db.session.commit()
        return p

    return run_with_retry(_op)


def toggle_activation(product_id: int, admin: User) -> Product:
    require(admin, "product.toggle_activation", entity_type="product", entity_id=product_id)

    def _op():
        p = _get_live_product(product_id, for_update=True)
        next_state(PRODUCT_TRANSITIONS, entity="product", current=p.approval_status, action="toggle_activation")
        p.is_active = not p.is_active
        _record("product.activation_toggled", p, admin, is_active=p.is_active)
        db.session.commit()
        return p

    return run_with_retry(_op)


def edit(product_id: int, patch: dict, actor: User) -> Product:
    """
    Edit catalog fields.

    Admins may edit in any state; sellers only their own products in draft
    or rejected. Editing an approved or rejected product sends it back to
    draft and clears approval flags, stamps and rejection reason.
    """
    patch = validate_payload(model=Product, payload=patch, policy=PRODUCT_EDIT_POLICY, partial=True)
    enforce_rules_product(patch)
    _ensure_organization(patch.get("organization_id"))

    def _op():
        p = _get_live_product(product_id, for_update=True)
        require(actor, "product.edit", is_owner=p.seller_id == actor.id,
                entity_type="product", entity_id=p.id)

        previous = p.approval_status
        if not is_admin(actor) and previous not in ("draft", "rejected"):
            raise InvalidTransitionError(f"Sellers cannot edit a product in status {previous}")
        target = next_state(PRODUCT_TRANSITIONS, entity="product", current=previous, action="edit")

        if "name_en" in patch:
            _ensure_unique_name(p.seller_id, patch["name_en"], exclude_id=p.id)

        apply_product_patch(p, patch)
        p.approval_status = target
        if previous in ("approved", "rejected"):
            p.is_approved = False
            p.is_active = False
            p.approved_by = None
            p.approved_at = None
            p.approval_note = None
            p.rejection_reason = None

        _record("product.updated", p, actor,
                note=f"Updated fields: {', '.join(sorted(patch.keys()))}",
                previous_status=previous, status=target)
        db.session.commit()
        return p

    return run_with_retry(_op)


def delete(product_id: int, admin: User) -> Product:
    """Soft delete: only draft or rejected products."""
    require(admin, "product.delete", entity_type="product", entity_id=product_id)

    def _op():
        p = _get_live_product(product_id, for_update=True)
        next_state(PRODUCT_TRANSITIONS, entity="product", current=p.approval_status, action="delete")
        p.deleted_at = utcnow()
        p.is_active = False
        _record("product.deleted", p, admin, note=f"Soft-deleted product name_en={p.name_en}")
        db.session.commit()
        return p

    return run_with_retry(_op)


def hard_delete(product_id: int, admin: User) -> None:
    """
    Remove the row regardless of state. Order items keep their price
    snapshot with product_id nulled; ratings and comments go with it.
    """
    require(admin, "product.delete", entity_type="product", entity_id=product_id)

    def _op():
        p = db.session.get(Product, product_id)
        if not p:
            raise NotFoundError("Product not found")

        detached = (
            db.session.query(OrderItem)
            .filter(OrderItem.product_id == p.id)
            .update({OrderItem.product_id: None}, synchronize_session=False)
        )
        db.session.query(Rating).filter(Rating.product_id == p.id).delete(synchronize_session=False)
        db.session.query(Comment).filter(Comment.product_id == p.id).delete(synchronize_session=False)
        _record("product.hard_deleted", p, admin, name_en=p.name_en, detached_order_items=detached)
        db.session.delete(p)
        db.session.commit()

    run_with_retry(_op)


def get_product(product_id: int, viewer: User | None = None) -> Product:
    """
    Public products are visible to everyone; anything else only to admins
    and the owning seller. Hidden products raise NotFoundError.
    """
    p = _get_live_product(product_id)
    if p.is_purchasable:
        return p
    if viewer is not None and user_can(viewer, "product.view_own", is_owner=p.seller_id == viewer.id):
        return p
    raise NotFoundError("Product not found")


def _public_query():
    return db.session.query(Product).filter(
        Product.deleted_at.is_(None),
        Product.approval_status == "approved",
        Product.is_approved.is_(True),
        Product.is_active.is_(True),
    )


def list_products(
    actor: User,
    *,
    seller_id: int | None = None,
    organization_id: int | None = None,
    approval_status: str | None = None,
    is_active: bool | None = None,
    min_price_cents: int | None = None,
    max_price_cents: int | None = None,
    page=None,
    per_page=None,
) -> dict:
    """Admin listing with filters; soft-deleted rows are excluded."""
    require(actor, "product.view_all", entity_type="product")

    query = db.session.query(Product).filter(Product.deleted_at.is_(None))
    if seller_id is not None:
        query = query.filter(Product.seller_id == seller_id)
    if organization_id is not None:
        query = query.filter(Product.organization_id == organization_id)
    if approval_status:
        validate_choice("approval_status", approval_status, PRODUCT_STATUSES)
        query = query.filter(Product.approval_status == approval_status)
    if is_active is not None:
        query = query.filter(Product.is_active.is_(bool(is_active)))
    if min_price_cents is not None:
        query = query.filter(Product.price_cents >= min_price_cents)
    if max_price_cents is not None:
        query = query.filter(Product.price_cents <= max_price_cents)

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate_query(query, page, per_page)


def list_public_products(organization_id: int | None = None, page=None, per_page=None) -> dict:
    query = _public_query()
    if organization_id is not None:
        query = query.filter(Product.organization_id == organization_id)
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate_query(query, page, per_page)


def search_products(q: str | None, page=None, per_page=None) -> dict:
    if not isinstance(q, str) or not q.strip():
        raise ValidationError("Search query is required")
    pattern = f"%{q.strip().lower()}%"
    query = _public_query().filter(
        or_(
            func.lower(Product.name_en).like(pattern),
            func.lower(func.coalesce(Product.name_ar, "")).like(pattern),
        )
    ).order_by(Product.name_en.asc(), Product.id.asc())
    return paginate_query(query, page, per_page)


def list_seller_products(seller_id: int, viewer: User | None = None, page=None, per_page=None) -> dict:
    """
    The owning seller and admins see every live product of the seller;
    everyone else sees only the public ones.
    """
    if viewer is not None and user_can(viewer, "product.view_own", is_owner=viewer.id == seller_id):
        query = db.session.query(Product).filter(Product.deleted_at.is_(None))
    else:
        query = _public_query()
    query = query.filter(Product.seller_id == seller_id).order_by(Product.created_at.desc(), Product.id.desc())
    return paginate_query(query, page, per_page)


def list_by_status(status: str, actor: User, page=None, per_page=None) -> dict:
    require(actor, "product.view_all", entity_type="product")
    validate_choice("approval_status", status, PRODUCT_STATUSES)
    query = (
        db.session.query(Product)
        .filter(Product.deleted_at.is_(None), Product.approval_status == status)
        .order_by(Product.created_at.asc(), Product.id.asc())
    )
    return paginate_query(query, page, per_page)


def get_admin_statistics(actor: User) -> dict:
    require(actor, "product.view_all", entity_type="product")

    live = db.session.query(Product).filter(Product.deleted_at.is_(None))
    by_status = dict(
        live.with_entities(Product.approval_status, func.count(Product.id))
        .group_by(Product.approval_status)
        .all()
    )
    return {
        "total": live.count(),
        "active": live.filter(Product.is_active.is_(True)).count(),
        "approved": by_status.get("approved", 0),
        "pending": by_status.get("pending_approval", 0),
        "draft": by_status.get("draft", 0),
        "rejected": by_status.get("rejected", 0),
        "suspended": by_status.get("suspended", 0),
    }
