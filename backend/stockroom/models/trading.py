from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Purchase(db.Model):
    """
    Stock bought from a firm.

    product_id is deliberately not a foreign key: purchases outlive the product
    they refer to (deleting a product does not cascade to its purchases).

    amount is derived (purchase_price * quantity) and never stored.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_product", "product_id"),
        db.Index("ix_purchases_buyer", "buyer_id"),
        db.Index("ix_purchases_user", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, nullable=False)
    firm_id = db.Column(db.Integer, db.ForeignKey("firms.id"), nullable=False)

    # Who bought the stock and who recorded it
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    purchase_price = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    firm = db.relationship("Firm")
    buyer = db.relationship("User", foreign_keys=[buyer_id])
    user = db.relationship("User", foreign_keys=[user_id])

    @property
    def amount(self) -> float:
        return (self.purchase_price or 0.0) * (self.quantity or 0)

    def owner_ids(self) -> set[int]:
        return {self.user_id, self.buyer_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "firm_id": self.firm_id,
            "buyer_id": self.buyer_id,
            "user_id": self.user_id,
            "quantity": self.quantity,
            "purchase_price": self.purchase_price,
            "amount": self.amount,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Sell(db.Model):
    """
    Stock sold by a user.

    amount is derived (sell_price * quantity) and never stored.
    """
    __tablename__ = "sells"
    __table_args__ = (
        db.Index("ix_sells_product", "product_id"),
        db.Index("ix_sells_seller", "seller_id"),
        db.Index("ix_sells_user", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, nullable=False)

    # Who made the sale and who recorded it
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    sell_price = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    seller = db.relationship("User", foreign_keys=[seller_id])
    user = db.relationship("User", foreign_keys=[user_id])

    @property
    def amount(self) -> float:
        return (self.sell_price or 0.0) * (self.quantity or 0)

    def owner_ids(self) -> set[int]:
        return {self.user_id, self.seller_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "seller_id": self.seller_id,
            "user_id": self.user_id,
            "quantity": self.quantity,
            "sell_price": self.sell_price,
            "amount": self.amount,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
