from __future__ import annotations

from ..extensions import db
from sweetshop.time_utils import to_utc_z, utcnow


class Sweet(db.Model):
    """
    Catalog item.

    Quantity is stock in continuous units (e.g. kilograms), so both price and
    quantity are real numbers. Names are unique across the catalog.
    The CHECK constraints back up the service-level guards: stock can never
    be written below zero.
    """
    __tablename__ = "sweets"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_sweets_name"),
        db.CheckConstraint("price >= 0", name="ck_sweets_price_non_negative"),
        db.CheckConstraint("quantity >= 0", name="ck_sweets_quantity_non_negative"),
        db.Index("ix_sweets_category", "category"),
        db.Index("ix_sweets_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)

    # Price per unit of quantity
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=0, server_default="0")

    image_url = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Sweet id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "quantity": self.quantity,
            "image_url": self.image_url,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
