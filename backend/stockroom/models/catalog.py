from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Brand(db.Model):
    __tablename__ = "brands"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Firm(db.Model):
    """A vendor that products are purchased from."""
    __tablename__ = "firms"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Firm id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "description": self.description,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data with its current stock level.

    STOCK INVARIANT:
    quantity == initial quantity + sum(purchase deltas) - sum(sell deltas).
    After creation, quantity is only written by inventory_service, always in the
    same transaction as the purchase/sell record and the history entry.

    CONCURRENCY:
    version_id is an optimistic lock. A writer that loaded a stale row gets
    StaleDataError on flush and the operation is retried from scratch.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category_id"),
        db.Index("ix_products_brand", "brand_id"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)

    # Current market (selling) price
    price = db.Column(db.Float, nullable=False, default=0.0)

    # Current stock on hand
    quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))

    purchase_history = db.relationship(
        "PurchaseHistoryEntry",
        order_by="PurchaseHistoryEntry.id",
        cascade="all, delete-orphan",
        lazy=True,
    )
    sell_history = db.relationship(
        "SellHistoryEntry",
        order_by="SellHistoryEntry.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self, include_history: bool = False) -> dict:
        data = {
            "id": self.id,
            "category_id": self.category_id,
            "brand_id": self.brand_id,
            # Embedded references so consumers can resolve names without a side table
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
            "brand": {"id": self.brand.id, "name": self.brand.name} if self.brand else None,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "price": self.price,
            "quantity": self.quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_history:
            data["purchase_history"] = [e.to_dict() for e in self.purchase_history]
            data["sell_history"] = [e.to_dict() for e in self.sell_history]
        return data


class PurchaseHistoryEntry(db.Model):
    """
    Append-only audit trail of stock increments caused by purchases.

    quantity is the signed delta applied to Product.quantity: positive on
    create, new - old on update, negative on delete.
    """
    __tablename__ = "product_purchase_history"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    purchase_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("firms.id"), nullable=True)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "vendor_id": self.vendor_id,
            "price": self.price,
            "quantity": self.quantity,
            "date": to_utc_z(self.date),
        }


class SellHistoryEntry(db.Model):
    """
    Append-only audit trail of stock decrements caused by sells.

    quantity is the amount taken out of stock: positive on create, new - old on
    update, negative when a sell is deleted and its stock returned.
    """
    __tablename__ = "product_sell_history"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    sell_id = db.Column(db.Integer, nullable=True, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sell_id": self.sell_id,
            "seller_id": self.seller_id,
            "price": self.price,
            "quantity": self.quantity,
            "date": to_utc_z(self.date),
        }
