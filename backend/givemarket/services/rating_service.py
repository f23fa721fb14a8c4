# Overview: Product star ratings; one per customer per product.

"""
Ratings Service

A customer rates a public product once. The (user_id, product_id) unique
constraint backs the pre-check so two concurrent first ratings still end in
a single row and a ConflictError for the loser.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Rating, User
from ..pagination import paginate_query
from ..validation import coerce_int
from .audit_service import append_audit_event
from .permission_service import require
from . import product_service

MIN_RATING = 1
MAX_RATING = 5


def _coerce_value(value) -> int:
    if value is None:
        raise ValidationError("value is required")
    number = coerce_int("value", value)
    if number < MIN_RATING or number > MAX_RATING:
        raise ValidationError(f"value must be between {MIN_RATING} and {MAX_RATING}")
    return number


def _record(event_type: str, rating: Rating, actor: User, **payload) -> None:
    append_audit_event(
        event_type=event_type,
        entity_type="rating",
        entity_id=rating.id,
        actor_user_id=actor.id,
        payload=payload or None,
    )


def _get(rating_id: int) -> Rating:
    rating = db.session.get(Rating, rating_id)
    if not rating:
        raise NotFoundError("Rating not found")
    return rating


def create_rating(user: User, product_id, value) -> Rating:
    """
    Raises:
        NotAuthorizedError: user may not rate (sellers, inactive accounts)
        NotFoundError: product missing or not public
        ValidationError: value outside 1-5
        ConflictError: user already rated this product
    """
    require(user, "rating.create", entity_type="rating")
    product_id = coerce_int("product_id", product_id)
    value = _coerce_value(value)
    product = product_service.get_product(product_id, viewer=user)

    existing = (
        db.session.query(Rating.id)
        .filter(Rating.user_id == user.id, Rating.product_id == product.id)
        .first()
    )
    if existing:
        raise ConflictError("You have already rated this product")

    rating = Rating(user_id=user.id, product_id=product.id, value=value)
    db.session.add(rating)
    try:
        db.session.flush()
        _record("rating.created", rating, user, product_id=product.id, value=value)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("You have already rated this product") from exc
    return rating


def get_rating(rating_id: int, actor: User) -> Rating:
    rating = _get(rating_id)
    require(
        actor,
        "rating.view_all",
        is_owner=rating.user_id == actor.id,
        entity_type="rating",
        entity_id=rating.id,
    )
    return rating


def update_rating(rating_id: int, value, actor: User) -> Rating:
    rating = _get(rating_id)
    require(
        actor,
        "rating.edit",
        is_owner=rating.user_id == actor.id,
        entity_type="rating",
        entity_id=rating.id,
        message="You can only edit your own ratings",
    )
    new_value = _coerce_value(value)
    old_value = rating.value
    rating.value = new_value
    _record("rating.updated", rating, actor, old_value=old_value, new_value=new_value)
    db.session.commit()
    return rating


def remove_rating(rating_id: int, actor: User) -> None:
    rating = _get(rating_id)
    require(
        actor,
        "rating.edit",
        is_owner=rating.user_id == actor.id,
        entity_type="rating",
        entity_id=rating.id,
        message="You can only delete your own ratings",
    )
    _record("rating.deleted", rating, actor, product_id=rating.product_id, value=rating.value)
    db.session.delete(rating)
    db.session.commit()


def list_ratings(actor: User, product_id=None, page=None, per_page=None) -> dict:
    require(actor, "rating.view_all", entity_type="rating")
    query = db.session.query(Rating)
    if product_id is not None:
        query = query.filter(Rating.product_id == coerce_int("product_id", product_id))
    return paginate_query(query.order_by(Rating.created_at.desc(), Rating.id.desc()), page, per_page)


def get_product_average(product_id: int) -> dict:
    """Average and count for a public product; average is None when unrated."""
    product = product_service.get_product(product_id)
    average, count = (
        db.session.query(func.avg(Rating.value), func.count(Rating.id))
        .filter(Rating.product_id == product.id)
        .one()
    )
    return {
        "product_id": product.id,
        "average": round(float(average), 2) if average is not None else None,
        "count": count,
    }


def get_user_rating(product_id: int, user: User) -> Rating:
    rating = (
        db.session.query(Rating)
        .filter(Rating.product_id == product_id, Rating.user_id == user.id)
        .first()
    )
    if not rating:
        raise NotFoundError("Rating not found")
    return rating
