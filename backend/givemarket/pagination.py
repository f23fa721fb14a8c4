# Overview: Page/per_page handling shared by every list endpoint.

from __future__ import annotations

from flask import current_app

from .errors import ValidationError


def _parse_positive(name: str, raw, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if value < 1:
        raise ValidationError(f"{name} must be >= 1")
    return value


def paginate_query(query, page=None, per_page=None) -> dict:
    """
    Apply offset/limit to a SQLAlchemy query.

    Returns:
        {"items": [...model instances...], "count": n, "pagination": {...}}
        Callers serialize the items.
    """
    default_size = current_app.config.get("DEFAULT_PAGE_SIZE", 20)
    max_size = current_app.config.get("MAX_PAGE_SIZE", 100)

    page = _parse_positive("page", page, 1)
    per_page = min(_parse_positive("per_page", per_page, default_size), max_size)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    items = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def serialize_page(result: dict, serializer=None) -> dict:
    serializer = serializer or (lambda obj: obj.to_dict())
    return {
        "items": [serializer(item) for item in result["items"]],
        "count": result["count"],
        "pagination": result["pagination"],
    }
