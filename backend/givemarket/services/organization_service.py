# Overview: Organization registry, verification workflow and the total_received aggregate.

"""
Organization Service

AGGREGATE INVARIANT:
    organization.total_received_cents ==
        SUM(donations.amount_cents) WHERE organization_id = org.id
                                      AND type = 'direct'
                                      AND status = 'completed'

increment_total_received is the only writer of total_received_cents and it
is only called from donation_service.update_status, inside the same
transaction that moves the donation to completed. Purchase donations do not
feed the aggregate.
"""

from __future__ import annotations

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, HasDependentsError, NotFoundError, ValidationError
from ..models import Donation, Organization, Product, User
from ..pagination import paginate_query
from ..validation import ORGANIZATION_POLICY, validate_payload
from .audit_service import append_audit_event
from .lifecycle_service import ORGANIZATION_TRANSITIONS, next_state
from .permission_service import require
from givemarket.time_utils import utcnow


UNIQUE_FIELDS = ("name_en", "name_ar", "blockchain_address")


def get_organization(organization_id: int) -> Organization:
    org = db.session.get(Organization, organization_id)
    if not org:
        raise NotFoundError("Organization not found")
    return org


def _check_unique(patch: dict, exclude_id: int | None = None) -> None:
    for field in UNIQUE_FIELDS:
        if field not in patch:
            continue
        query = db.session.query(Organization.id).filter(getattr(Organization, field) == patch[field])
        if exclude_id is not None:
            query = query.filter(Organization.id != exclude_id)
        if query.first():
            raise ConflictError(f"Organization with this {field} already exists")


def create_organization(payload: dict, actor: User) -> Organization:
    require(actor, "organization.manage", entity_type="organization")

    patch = validate_payload(model=Organization, payload=payload, policy=ORGANIZATION_POLICY, partial=False)
    _check_unique(patch)

    org = Organization(**patch)
    org.created_by = actor.id
    org.total_received_cents = 0
    org.is_verified = False
    db.session.add(org)
    try:
        db.session.flush()
        append_audit_event(
            event_type="organization.created",
            entity_type="organization",
            entity_id=org.id,
            actor_user_id=actor.id,
        )
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Organization name or blockchain address already exists") from exc
    return org


def update_organization(organization_id: int, payload: dict, actor: User) -> Organization:
    require(actor, "organization.manage", entity_type="organization", entity_id=organization_id)

    org = get_organization(organization_id)
    patch = validate_payload(model=Organization, payload=payload, policy=ORGANIZATION_POLICY, partial=True)
    _check_unique(patch, exclude_id=org.id)

    for key, value in patch.items():
        setattr(org, key, value)
    try:
        append_audit_event(
            event_type="organization.updated",
            entity_type="organization",
            entity_id=org.id,
            actor_user_id=actor.id,
            payload={"fields": sorted(patch.keys())},
        )
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Organization name or blockchain address already exists") from exc
    return org


def remove_organization(organization_id: int, actor: User) -> None:
    require(actor, "organization.manage", entity_type="organization", entity_id=organization_id)

    org = get_organization(organization_id)
    has_products = db.session.query(Product.id).filter(Product.organization_id == org.id).first()
    has_donations = db.session.query(Donation.id).filter(Donation.organization_id == org.id).first()
    if has_products or has_donations:
        raise HasDependentsError("Cannot delete organization with associated products or donations")

    append_audit_event(
        event_type="organization.deleted",
        entity_type="organization",
        entity_id=org.id,
        actor_user_id=actor.id,
        payload={"name_en": org.name_en},
    )
    db.session.delete(org)
    db.session.commit()


def verify(organization_id: int, actor: User) -> Organization:
    require(actor, "organization.manage", entity_type="organization", entity_id=organization_id)

    org = get_organization(organization_id)
    next_state(ORGANIZATION_TRANSITIONS, entity="organization", current=org.verification_status, action="verify")

    org.is_verified = True
    org.verified_by = actor.id
    org.verified_at = utcnow()
    org.rejection_reason = None
    append_audit_event(
        event_type="organization.verified",
        entity_type="organization",
        entity_id=org.id,
        actor_user_id=actor.id,
    )
    db.session.commit()
    return org


def reject(organization_id: int, actor: User, reason: str | None) -> Organization:
    require(actor, "organization.manage", entity_type="organization", entity_id=organization_id)

    if not reason or not str(reason).strip():
        raise ValidationError("Rejection reason is required")

    org = get_organization(organization_id)
    previous = org.verification_status
    next_state(ORGANIZATION_TRANSITIONS, entity="organization", current=previous, action="reject")

    org.is_verified = False
    org.verified_by = actor.id
    org.verified_at = utcnow()
    org.rejection_reason = str(reason).strip()
    append_audit_event(
        event_type="organization.rejected",
        entity_type="organization",
        entity_id=org.id,
        actor_user_id=actor.id,
        note=org.rejection_reason,
        payload={"previous_status": previous},
    )
    db.session.commit()
    return org


def increment_total_received(organization_id: int, amount_cents: int) -> None:
    """
    Atomically add `amount_cents` to the organization's total.

    Single UPDATE with an arithmetic expression so concurrent completions
    never lose an increment. Flushes only; the caller owns the transaction.

    Raises:
        ValidationError: amount is not a positive integer
        NotFoundError: no such organization
    """
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        raise ValidationError("Increment amount must be a positive integer")

    result = db.session.execute(
        update(Organization)
        .where(Organization.id == organization_id)
        .values(
            total_received_cents=Organization.total_received_cents + amount_cents,
            version_id=Organization.version_id + 1,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Organization not found")

    # Loaded instances must not keep the pre-increment total or version
    org = db.session.identity_map.get(db.session.identity_key(Organization, organization_id))
    if org is not None:
        db.session.expire(org)
    db.session.flush()


def list_organizations(is_verified: bool | None = None, page=None, per_page=None) -> dict:
    query = db.session.query(Organization)
    if is_verified is not None:
        query = query.filter(Organization.is_verified.is_(bool(is_verified)))
    query = query.order_by(Organization.created_at.desc(), Organization.id.desc())
    return paginate_query(query, page, per_page)


def list_verified(page=None, per_page=None) -> dict:
    return list_organizations(is_verified=True, page=page, per_page=per_page)


def list_pending(actor: User, page=None, per_page=None) -> dict:
    require(actor, "organization.manage", entity_type="organization")
    query = (
        db.session.query(Organization)
        .filter(Organization.is_verified.is_(False), Organization.rejection_reason.is_(None))
        .order_by(Organization.created_at.asc(), Organization.id.asc())
    )
    return paginate_query(query, page, per_page)


def direct_completed_sums() -> dict[int, int]:
    rows = (
        db.session.query(Donation.organization_id, func.coalesce(func.sum(Donation.amount_cents), 0))
        .filter(Donation.type == "direct", Donation.status == "completed")
        .group_by(Donation.organization_id)
        .all()
    )
    return {org_id: int(total) for org_id, total in rows}


def check_balances() -> list[dict]:
    """
    Recompute every organization's completed direct donations and compare
    with the stored aggregate. Read-only.

    Returns one row per organization with a `consistent` flag.
    """
    sums = direct_completed_sums()
    report = []
    for org in db.session.query(Organization).order_by(Organization.id.asc()).all():
        expected = sums.get(org.id, 0)
        report.append({
            "organization_id": org.id,
            "name_en": org.name_en,
            "total_received_cents": org.total_received_cents,
            "expected_cents": expected,
            "consistent": org.total_received_cents == expected,
        })
    return report
