from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import BigInteger, Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .services.lifecycle_service import ORDER_STATUSES, PAYMENT_STATUSES, validate_choice


# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
MAX_AMOUNT_CENTS = 999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "seller_id", "organization_id", "name_en", "name_ar",
        "description_en", "description_ar", "price_cents",
    },
    required_on_create={"seller_id", "name_en", "price_cents"},
)

PRODUCT_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={
        "organization_id", "name_en", "name_ar",
        "description_en", "description_ar", "price_cents",
    },
)

ORGANIZATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "name_en", "name_ar", "description_en", "description_ar",
        "logo_url", "blockchain_address",
    },
    required_on_create={"name_en", "name_ar", "blockchain_address"},
)

ORDER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"total_amount_cents", "status", "payment_status", "blockchain_tx_id"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, bools and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_positive_int(key: str, value: Any) -> int:
    if value is None:
        raise ValidationError(f"{key} is required")
    number = coerce_int(key, value)
    if number <= 0:
        raise ValidationError(f"{key} must be a positive integer")
    return number


def coerce_positive_cents(key: str, value: Any, maximum: int = MAX_AMOUNT_CENTS) -> int:
    if value is None:
        raise ValidationError(f"{key} is required")
    cents = coerce_int(key, value)
    if cents <= 0:
        raise ValidationError(f"{key} must be > 0")
    if cents > maximum:
        raise ValidationError(f"{key} cannot exceed {maximum}")
    return cents


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, (Integer, BigInteger)):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    if "price_cents" in patch:
        patch["price_cents"] = coerce_positive_cents("price_cents", patch["price_cents"], MAX_PRICE_CENTS)


def enforce_rules_order(patch: dict) -> None:
    if "total_amount_cents" in patch:
        patch["total_amount_cents"] = coerce_positive_cents("total_amount_cents", patch["total_amount_cents"])
    if "status" in patch:
        validate_choice("status", patch["status"], ORDER_STATUSES)
    if "payment_status" in patch:
        validate_choice("payment_status", patch["payment_status"], PAYMENT_STATUSES)


def require_text(payload: dict | None, key: str, *, label: str | None = None) -> str:
    """Return payload[key] stripped, or raise ValidationError when missing or blank."""
    value = (payload or {}).get(key)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label or key} is required")
    return value.strip()


def parse_bool_arg(raw) -> bool | None:
    """Query-string boolean: true/false/1/0/yes/no, or None when absent."""
    if raw is None or raw == "":
        return None
    value = str(raw).strip().lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    raise ValidationError(f"Invalid boolean value '{raw}'")
