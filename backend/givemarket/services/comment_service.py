# Overview: Customer comments on public products.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Comment, User
from ..pagination import paginate_query
from ..validation import coerce_int
from .audit_service import append_audit_event
from .permission_service import require
from . import product_service

MAX_COMMENT_LENGTH = 2000


def _clean_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("content is required")
    content = content.strip()
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"content must be at most {MAX_COMMENT_LENGTH} characters")
    return content


def get_comment(comment_id: int) -> Comment:
    comment = db.session.get(Comment, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def create_comment(user: User, product_id, content) -> Comment:
    require(user, "comment.create", entity_type="comment")
    product_id = coerce_int("product_id", product_id)
    content = _clean_content(content)
    product = product_service.get_product(product_id, viewer=user)

    comment = Comment(user_id=user.id, product_id=product.id, content=content)
    db.session.add(comment)
    db.session.flush()
    append_audit_event(
        event_type="comment.created",
        entity_type="comment",
        entity_id=comment.id,
        actor_user_id=user.id,
        payload={"product_id": product.id},
    )
    db.session.commit()
    return comment


def update_comment(comment_id: int, content, actor: User) -> Comment:
    comment = get_comment(comment_id)
    require(
        actor,
        "comment.edit",
        is_owner=comment.user_id == actor.id,
        entity_type="comment",
        entity_id=comment.id,
        message="You can only edit your own comments",
    )
    comment.content = _clean_content(content)
    append_audit_event(
        event_type="comment.updated",
        entity_type="comment",
        entity_id=comment.id,
        actor_user_id=actor.id,
    )
    db.session.commit()
    return comment


def remove_comment(comment_id: int, actor: User) -> None:
    comment = get_comment(comment_id)
    require(
        actor,
        "comment.edit",
        is_owner=comment.user_id == actor.id,
        entity_type="comment",
        entity_id=comment.id,
        message="You can only delete your own comments",
    )
    append_audit_event(
        event_type="comment.deleted",
        entity_type="comment",
        entity_id=comment.id,
        actor_user_id=actor.id,
        payload={"product_id": comment.product_id},
    )
    db.session.delete(comment)
    db.session.commit()


def list_comments(product_id=None, page=None, per_page=None) -> dict:
    """Newest first; filtered to one product when product_id is given."""
    query = db.session.query(Comment)
    if product_id is not None:
        query = query.filter(Comment.product_id == coerce_int("product_id", product_id))
    return paginate_query(query.order_by(Comment.created_at.desc(), Comment.id.desc()), page, per_page)
