from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.auth import ROLES


USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
PURCHASE_QUANTITY_MIN = 0.01

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - clearable_fields: nullable fields where "" is stored as NULL
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    clearable_fields: set[str] | None = None


class FieldErrors:
    """Collects per-field problems and raises them as one ValidationError."""

    def __init__(self):
        self.items: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({"field": field, "message": message})

    def raise_if_any(self) -> None:
        if self.items:
            first = self.items[0]["message"]
            raise ValidationError(first, details=list(self.items))


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.column_attrs}


def coerce_number(field: str, value: Any) -> float:
    """Accept JSON numbers or numeric strings; reject booleans, NaN and infinities."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a finite number")
    return number


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Float):
        return coerce_number(key, value)

    if isinstance(coltype, Integer):
        number = coerce_number(key, value)
        if not number.is_integer():
            raise ValidationError(f"{key} must be an integer")
        return int(number)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        return value.strip()

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
    clearable = policy.clearable_fields or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            errors = FieldErrors()
            for field in missing:
                errors.add(field, f"{field} is required")
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details=errors.items,
            )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}
    errors = FieldErrors()

    for k, raw in payload.items():
        col = cols[k].columns[0]

        # NULL handling
        if raw is None:
            if not col.nullable:
                errors.add(k, f"{k} cannot be null")
                continue
            patch[k] = None
            continue

        try:
            val = _coerce_value(k, col, raw)
        except ValidationError as e:
            errors.add(k, e.message)
            continue

        if isinstance(col.type, (String, Text)) and val == "":
            if k in clearable:
                patch[k] = None
                continue
            if not col.nullable:
                errors.add(k, f"{k} cannot be blank")
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.add(k, f"{k} exceeds max length {col.type.length}")
                continue

        patch[k] = val

    errors.raise_if_any()
    return patch


def enforce_rules_sweet(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors = FieldErrors()
    if patch.get("price") is not None and patch["price"] < 0:
        errors.add("price", "price must be >= 0")
    if patch.get("quantity") is not None and patch["quantity"] < 0:
        errors.add("quantity", "quantity must be >= 0")
    errors.raise_if_any()


def validate_registration(payload: dict | None) -> dict:
    """Shape checks for self-registration. Uniqueness is the service's job."""
    payload = payload if isinstance(payload, dict) else {}
    errors = FieldErrors()

    username = payload.get("username")
    username = username.strip() if isinstance(username, str) else ""
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        errors.add(
            "username",
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters",
        )

    email = payload.get("email")
    email = email.strip() if isinstance(email, str) else ""
    if not EMAIL_RE.match(email):
        errors.add("email", "Invalid email address")

    password = payload.get("password")
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        errors.add("password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    role = payload.get("role")
    if role is not None and role not in ROLES:
        errors.add("role", f"Role must be one of: {', '.join(ROLES)}")

    errors.raise_if_any()
    return {"username": username, "email": email, "password": password, "role": role}


def validate_login(payload: dict | None) -> tuple[str, str]:
    payload = payload if isinstance(payload, dict) else {}
    errors = FieldErrors()

    identifier = payload.get("username") or payload.get("email")
    if not isinstance(identifier, str) or not identifier.strip():
        errors.add("username", "Username or email is required")

    password = payload.get("password")
    if not isinstance(password, str) or not password:
        errors.add("password", "Password is required")

    errors.raise_if_any()
    return identifier.strip(), password


def validate_purchase_quantity(payload: dict | None) -> float:
    """Purchase quantity is optional (default 1) and must be at least 0.01."""
    payload = payload if isinstance(payload, dict) else {}
    raw = payload.get("quantity")
    if raw is None:
        return 1.0
    quantity = coerce_number("quantity", raw)
    if quantity < PURCHASE_QUANTITY_MIN:
        raise ValidationError(
            "Quantity must be a positive number",
            details=[{"field": "quantity", "message": f"quantity must be >= {PURCHASE_QUANTITY_MIN}"}],
        )
    return quantity


def validate_restock_quantity(payload: dict | None) -> float:
    payload = payload if isinstance(payload, dict) else {}
    raw = payload.get("quantity")
    if raw is None:
        raise ValidationError(
            "quantity is required",
            details=[{"field": "quantity", "message": "quantity is required"}],
        )
    quantity = coerce_number("quantity", raw)
    if quantity <= 0:
        raise ValidationError(
            "Quantity must be greater than 0",
            details=[{"field": "quantity", "message": "quantity must be > 0"}],
        )
    return quantity


def parse_search_params(args) -> dict:
    """Turn query-string args into search filters; blank values impose no constraint."""
    params: dict = {}

    for key in ("name", "category"):
        value = args.get(key)
        if value is not None and value.strip():
            params[key] = value.strip()

    errors = FieldErrors()
    for key, target in (("minPrice", "min_price"), ("maxPrice", "max_price")):
        value = args.get(key)
        if value is None or not value.strip():
            continue
        try:
            number = coerce_number(key, value)
        except ValidationError as e:
            errors.add(key, e.message)
            continue
        if number < 0:
            errors.add(key, f"{key} must be a positive number")
            continue
        params[target] = number

    errors.raise_if_any()
    return params


def parse_id(raw: Any) -> int:
    try:
        return int(str(raw), 10)
    except (TypeError, ValueError):
        raise ValidationError("Invalid ID parameter")
