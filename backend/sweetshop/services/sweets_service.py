# backend/sweetshop/services/sweets_service.py
"""
Sweets Service: catalog CRUD, search, purchase and restock.

The purchase transaction is the one multi-step write:
read the sweet, check stock, decrement, append a ledger entry, commit,
return the re-read sweet. The decrement is a conditional UPDATE (see
concurrency.decrement_stock_if_available) so two concurrent purchases can
never drive stock below zero; the loser gets InsufficientStock and nothing
is written for it.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InsufficientStock, NotFound, ValidationError
from ..extensions import db
from ..models import Sweet
from .concurrency import decrement_stock_if_available, lock_for_update
from .purchase_service import append_purchase

SWEET_NOT_FOUND = "Sweet not found"
SWEET_NAME_EXISTS = "Sweet with this name already exists"
INSUFFICIENT_QUANTITY = "Insufficient quantity in stock"

SWEET_MUTABLE_FIELDS = {"name", "category", "price", "quantity", "image_url", "description"}


def apply_sweet_patch(s: Sweet, patch: dict) -> None:
    for k, v in patch.items():
        if k not in SWEET_MUTABLE_FIELDS:
            continue
        setattr(s, k, v)


def _newest_first(query):
    return query.order_by(Sweet.created_at.desc(), Sweet.id.desc())


def _require_sweet(sweet_id: int) -> Sweet:
    s = db.session.get(Sweet, sweet_id)
    if not s:
        raise NotFound(SWEET_NOT_FOUND)
    return s


def _require_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Sweet).filter(Sweet.name == name)
    if exclude_id is not None:
        query = query.filter(Sweet.id != exclude_id)
    if query.first():
        raise Conflict(SWEET_NAME_EXISTS)


def list_sweets() -> list[dict]:
    return [s.to_dict() for s in _newest_first(db.session.query(Sweet)).all()]


def get_sweet(sweet_id: int) -> dict | None:
    s = db.session.get(Sweet, sweet_id)
    return s.to_dict() if s else None


def search_sweets(
    *,
    name: str | None = None,
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
) -> list[dict]:
    """
    AND-combined optional filters; an absent filter matches everything.

    - name: case-insensitive substring
    - category: exact match
    - min_price / max_price: inclusive bounds
    """
    query = db.session.query(Sweet)

    if name:
        query = query.filter(func.lower(Sweet.name).contains(name.lower(), autoescape=True))
    if category:
        query = query.filter(Sweet.category == category)
    if min_price is not None:
        query = query.filter(Sweet.price >= min_price)
    if max_price is not None:
        query = query.filter(Sweet.price <= max_price)

    return [s.to_dict() for s in _newest_first(query).all()]


def create_sweet(*, patch: dict) -> dict:
    """
    Create a sweet from a validated patch dict.

    Raises:
        Conflict: If a sweet with the same name exists
    """
    _require_unique_name(patch["name"])

    s = Sweet(quantity=0)
    apply_sweet_patch(s, patch)
    if s.quantity is None:
        s.quantity = 0

    db.session.add(s)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(SWEET_NAME_EXISTS)

    current_app.logger.info("Created sweet id=%s name=%r", s.id, s.name)
    return s.to_dict()


def update_sweet(*, sweet_id: int, patch: dict) -> dict:
    """
    Partially update a sweet.

    Renaming is checked against every other sweet; keeping the current
    name is always allowed.

    Raises:
        NotFound: If the sweet does not exist
        Conflict: If the new name belongs to another sweet
    """
    s = _require_sweet(sweet_id)

    if "name" in patch and patch["name"] != s.name:
        _require_unique_name(patch["name"], exclude_id=s.id)

    apply_sweet_patch(s, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(SWEET_NAME_EXISTS)

    return s.to_dict()


def delete_sweet(*, sweet_id: int) -> None:
    """
    Hard-delete a sweet. Purchase history keeps its snapshot rows.

    Raises:
        NotFound: If the sweet does not exist
        Conflict: If the database enforces the purchases foreign key and
            the sweet has history
    """
    s = _require_sweet(sweet_id)

    db.session.delete(s)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Sweet has purchase history and cannot be deleted")

    current_app.logger.info("Deleted sweet id=%s", sweet_id)


def purchase_sweet(*, sweet_id: int, quantity: float, user_id: int) -> dict:
    """
    Take `quantity` units of a sweet for `user_id` and record the purchase.

    Buying exactly the remaining stock is allowed and leaves quantity at 0.

    Returns:
        The sweet re-read after the decrement

    Raises:
        ValidationError: If quantity is not positive
        NotFound: If the sweet does not exist
        InsufficientStock: If stock is below `quantity` (stock unchanged)
    """
    if quantity <= 0:
        raise ValidationError("Quantity must be a positive number")

    s = lock_for_update(db.session.query(Sweet).filter(Sweet.id == sweet_id)).first()
    if not s:
        raise NotFound(SWEET_NOT_FOUND)

    if s.quantity < quantity:
        current_app.logger.warning(
            "Purchase refused: sweet_id=%s has %s, user_id=%s asked for %s",
            sweet_id, s.quantity, user_id, quantity,
        )
        raise InsufficientStock(INSUFFICIENT_QUANTITY)

    if not decrement_stock_if_available(s.id, quantity):
        # Stock changed between the read and the write
        db.session.rollback()
        current_app.logger.warning("Purchase lost stock race: sweet_id=%s user_id=%s", sweet_id, user_id)
        raise InsufficientStock(INSUFFICIENT_QUANTITY)

    # `s` still holds the pre-decrement snapshot; the UPDATE bypassed the session
    purchase = append_purchase(user_id=user_id, sweet=s, quantity=quantity)
    db.session.commit()

    current_app.logger.info(
        "Purchase id=%s user_id=%s sweet_id=%s quantity=%s total=%s",
        purchase.id, user_id, sweet_id, quantity, purchase.total_amount,
    )

    # commit() expired `s`; this reloads the post-decrement row
    return s.to_dict()


def restock_sweet(*, sweet_id: int, quantity: float) -> dict:
    """
    Add `quantity` units to a sweet's stock. No upper bound.

    Raises:
        ValidationError: If quantity is not positive
        NotFound: If the sweet does not exist
    """
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    s = lock_for_update(db.session.query(Sweet).filter(Sweet.id == sweet_id)).first()
    if not s:
        raise NotFound(SWEET_NOT_FOUND)

    s.quantity = Sweet.quantity + quantity
    db.session.commit()

    current_app.logger.info("Restocked sweet id=%s by %s", sweet_id, quantity)
    return s.to_dict()
