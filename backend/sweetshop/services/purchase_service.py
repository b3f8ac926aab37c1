# Overview: Service-layer operations for the purchase ledger; append and query only.

from __future__ import annotations

from ..extensions import db
from ..models import Purchase, Sweet, User
from sweetshop.time_utils import utcnow
"""
Purchase Ledger Invariants (authoritative)

- Append-only: rows are inserted once per successful purchase and never
  updated or deleted.
- Each row snapshots the sweet's name, category and price as they were
  before the stock decrement; total_amount = price * quantity.
- Entries are written inside the same DB transaction as the decrement
  they record (the caller commits).
- Listings are newest first (purchased_at DESC, then id DESC).
"""


def append_purchase(
    *,
    user_id: int,
    sweet: Sweet,
    quantity: float,
) -> Purchase:
    """
    Append a ledger entry for `quantity` units of `sweet`.

    `sweet` must still hold its pre-purchase name/category/price.
    Does not commit.
    """
    purchase = Purchase(
        user_id=user_id,
        sweet_id=sweet.id,
        sweet_name=sweet.name,
        category=sweet.category,
        price=sweet.price,
        quantity=quantity,
        total_amount=sweet.price * quantity,
        purchased_at=utcnow(),
    )
    db.session.add(purchase)
    db.session.flush()  # ensures purchase.id is assigned without committing
    return purchase


def get_user_purchases(user_id: int) -> list[dict]:
    purchases = (
        db.session.query(Purchase)
        .filter(Purchase.user_id == user_id)
        .order_by(Purchase.purchased_at.desc(), Purchase.id.desc())
        .all()
    )
    return [p.to_dict() for p in purchases]


def get_all_purchases() -> list[dict]:
    """
    Every purchase across all users, each with the buyer's username.

    Outer join: a purchase whose user no longer exists is still listed,
    with username None.
    """
    rows = (
        db.session.query(Purchase, User.username)
        .outerjoin(User, Purchase.user_id == User.id)
        .order_by(Purchase.purchased_at.desc(), Purchase.id.desc())
        .all()
    )

    items = []
    for purchase, username in rows:
        item = purchase.to_dict()
        item["username"] = username
        items.append(item)
    return items
