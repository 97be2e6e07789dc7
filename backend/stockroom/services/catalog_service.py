# backend/stockroom/services/catalog_service.py
"""
Catalog Service: products and the reference tables they point at
(categories, brands, firms).

- Product.quantity is only settable at creation. Later changes go through
  inventory_service so the history trail stays complete.
- Deleting a product is a hard delete. Its purchases and sells are kept
  (they hold a plain product_id, not a foreign key); its history rows go
  with it.
- A category, brand or firm cannot be deleted while something refers to it.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Brand, Category, Firm, Product, Purchase, PurchaseHistoryEntry
from ..validation import ConflictError, NotFoundError, ValidationError, enforce_rules_product
from .concurrency import lock_for_update, run_with_retry
from .query_service import ListQuery, apply_list_query

PRODUCT_CREATE_FIELDS = {"category_id", "brand_id", "name", "description", "image", "price", "quantity"}
PRODUCT_MUTABLE_FIELDS = {"category_id", "brand_id", "name", "description", "image", "price"}

REFERENCE_LABELS = {Category: "category", Brand: "brand", Firm: "firm"}


# -- Products --

def _check_product_refs(patch: dict) -> None:
    if patch.get("category_id") is not None and db.session.get(Category, patch["category_id"]) is None:
        raise NotFoundError("category not found")
    if patch.get("brand_id") is not None and db.session.get(Brand, patch["brand_id"]) is None:
        raise NotFoundError("brand not found")


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("product not found")
    return product


def list_products(lq: ListQuery) -> tuple[list[Product], dict]:
    return apply_list_query(db.session.query(Product), Product, lq)


def create_product(patch: dict) -> Product:
    """Create a product from a validated patch; quantity is the opening stock."""
    enforce_rules_product(patch)
    _check_product_refs(patch)

    p = Product()
    for k, v in patch.items():
        if k in PRODUCT_CREATE_FIELDS:
            setattr(p, k, v)
    if p.quantity is None:
        p.quantity = 0

    db.session.add(p)
    db.session.commit()
    return p


def update_product(product_id: int, patch: dict) -> Product:
    if "quantity" in patch:
        raise ValidationError("quantity changes only through purchases and sells")
    enforce_rules_product(patch)
    _check_product_refs(patch)

    def _op():
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise NotFoundError("product not found")
        for k, v in patch.items():
            if k in PRODUCT_MUTABLE_FIELDS:
                setattr(p, k, v)
        db.session.commit()
        return p

    return run_with_retry(_op)


def delete_product(product_id: int) -> None:
    p = get_product(product_id)
    db.session.delete(p)
    db.session.commit()


# -- Categories / Brands / Firms --

def _label(model) -> str:
    return REFERENCE_LABELS[model]


def _ensure_unique_name(model, name: str | None, exclude_id: int | None = None) -> None:
    if name is None:
        return
    q = db.session.query(model).filter(db.func.lower(model.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"{_label(model)} name already exists")


def get_reference(model, ref_id: int):
    obj = db.session.get(model, ref_id)
    if obj is None:
        raise NotFoundError(f"{_label(model)} not found")
    return obj


def list_references(model, lq: ListQuery):
    return apply_list_query(db.session.query(model), model, lq)


def create_reference(model, patch: dict):
    _ensure_unique_name(model, patch.get("name"))
    obj = model(**patch)
    db.session.add(obj)
    db.session.commit()
    return obj


def update_reference(model, ref_id: int, patch: dict):
    obj = get_reference(model, ref_id)
    _ensure_unique_name(model, patch.get("name"), exclude_id=obj.id)
    for k, v in patch.items():
        setattr(obj, k, v)
    db.session.commit()
    return obj


def _in_use(model, ref_id: int) -> bool:
    if model is Category:
        return db.session.query(Product.id).filter(Product.category_id == ref_id).first() is not None
    if model is Brand:
        return db.session.query(Product.id).filter(Product.brand_id == ref_id).first() is not None
    return (
        db.session.query(Purchase.id).filter(Purchase.firm_id == ref_id).first() is not None
        or db.session.query(PurchaseHistoryEntry.id).filter(PurchaseHistoryEntry.vendor_id == ref_id).first()
        is not None
    )


def delete_reference(model, ref_id: int) -> None:
    obj = get_reference(model, ref_id)
    if _in_use(model, ref_id):
        raise ConflictError(f"{_label(model)} is still in use")
    db.session.delete(obj)
    db.session.commit()
