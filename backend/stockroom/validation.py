from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import ROLES


# Upper bound for any unit price: keeps float arithmetic well inside exact-integer range
MAX_PRICE = 9_999_999.99

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate brand name)."""


class NotFoundError(LookupError):
    """404-level: a referenced record does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_column_value(col, value: Any):
    """Coerce a raw JSON/query-string value to the Python type of a column."""
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Floats (prices) - accept ints, floats and numeric strings; reject NaN/inf
    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        else:
            raise ValidationError(f"{col.key} must be a number")
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{col.key} must be a finite number")
        return number

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes"):
                return True
            if lowered in ("false", "0", "no"):
                return False
            raise ValidationError(f"{col.key} must be a boolean")
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
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

        val = coerce_column_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        price = patch[field]
        if price < 0:
            raise ValidationError(f"{field} must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE:,.2f}")


def _check_positive_quantity(patch: dict) -> None:
    if "quantity" in patch:
        if patch["quantity"] is None or patch["quantity"] <= 0:
            raise ValidationError("quantity must be > 0")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "price")
    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] < 0:
        raise ValidationError("quantity must be >= 0")


def enforce_rules_purchase(patch: dict) -> None:
    _check_positive_quantity(patch)
    _check_price(patch, "purchase_price")


def enforce_rules_sell(patch: dict) -> None:
    _check_positive_quantity(patch)
    _check_price(patch, "sell_price")


def enforce_rules_user(patch: dict) -> None:
    if "email" in patch and patch["email"] is not None:
        if not EMAIL_RE.match(patch["email"]):
            raise ValidationError(f"{patch['email']} is not a valid email address")
    if "role" in patch:
        if patch["role"] not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
