from __future__ import annotations

from ..extensions import db
from sweetshop.time_utils import to_utc_z, utcnow


class Purchase(db.Model):
    """
    Append-only purchase ledger entry.

    sweet_name, category and price are a snapshot of the sweet at purchase
    time. They are deliberately denormalized so history survives later edits
    to, or deletion of, the sweet. Rows are never updated or deleted.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        db.Index("ix_purchases_user_purchased_at", "user_id", "purchased_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # No ON DELETE cascade: deleting a sweet must not erase its history
    sweet_id = db.Column(db.Integer, db.ForeignKey("sweets.id"), nullable=False, index=True)

    sweet_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Float, nullable=False)

    quantity = db.Column(db.Float, nullable=False)
    total_amount = db.Column(db.Float, nullable=False)

    purchased_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Purchase id={self.id} user_id={self.user_id} sweet_id={self.sweet_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sweet_id": self.sweet_id,
            "sweet_name": self.sweet_name,
            "category": self.category,
            "price": self.price,
            "quantity": self.quantity,
            "total_amount": self.total_amount,
            "purchased_at": to_utc_z(self.purchased_at),
        }
