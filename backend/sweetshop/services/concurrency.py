# Overview: Service-layer helpers for concurrent stock updates.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Sweet
from sweetshop.time_utils import utcnow


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def decrement_stock_if_available(sweet_id: int, quantity: float) -> bool:
    """
    Atomically take `quantity` units from a sweet's stock.

    Single conditional UPDATE: the row only changes if it still holds at
    least `quantity`. Returns False when no row matched, i.e. a concurrent
    purchase got there first. Does not commit.
    """
    result = db.session.execute(
        update(Sweet)
        .where(Sweet.id == sweet_id, Sweet.quantity >= quantity)
        .values(quantity=Sweet.quantity - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
