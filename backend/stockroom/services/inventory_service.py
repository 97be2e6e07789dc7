# Overview: Service-layer operations for inventory; keeps product stock in step with purchases and sells.

# backend/stockroom/services/inventory_service.py

from sqlalchemy import or_

from ..extensions import db
from ..models import Firm, Product, Purchase, PurchaseHistoryEntry, Sell, SellHistoryEntry, User
from ..validation import NotFoundError, enforce_rules_purchase, enforce_rules_sell
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .permission_service import require_access, sees_all_trades, user_permissions
from .query_service import ListQuery, apply_list_query
"""
Stockroom Inventory Invariants (authoritative)

Stock model:
- Product.quantity is the current stock on hand.
- quantity == initial quantity + sum(purchase deltas) - sum(sell deltas).
- Every change to Product.quantity appends a history row carrying the signed
  delta, in the same DB transaction as the purchase/sell write.

Lifecycle:
- create: purchase adds quantity, sell removes it.
- update: delta = new - old is applied (0 when quantity is not changed); a
  history entry is appended even when delta is 0 so price edits are audited.
- delete: the inverse delta is applied and a negative-quantity compensating
  entry is appended, then the record is removed.

Guards:
- A sell may not take stock below zero at creation, nor on an update that
  increases its quantity. Both checks happen before anything is written.
- Purchase updates/deletes are unguarded: they may leave stock negative when
  the goods were already sold.

Concurrency:
- The product row is loaded with SELECT ... FOR UPDATE and carries an
  optimistic version_id. Each operation runs as one closure under
  run_with_retry, so a conflicting writer causes a clean re-run.

Orphans:
- Purchases and sells keep product_id after their product is deleted.
  Updating such a record raises NotFoundError; deleting it just removes it.
"""


class InsufficientStockError(Exception):
    """Raised when a sell asks for more than is on hand."""

    def __init__(self, available: int, requested: int):
        super().__init__(f"Insufficient stock: {available} available, {requested} requested")
        self.available = available
        self.requested = requested


def _get_product(product_id: int, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("product not found")
    return product


def _ensure_firm(firm_id: int) -> None:
    if db.session.get(Firm, firm_id) is None:
        raise NotFoundError("firm not found")


def _resolve_counterparty(actor: User, requested_id, label: str) -> int:
    """
    Buyer/seller identity for a trade.

    Defaults to the caller. Naming someone else requires ACT_AS_OTHER
    (admin only); everyone else is rejected rather than silently corrected.
    """
    if requested_id is None or requested_id == actor.id:
        return actor.id
    require_access(actor, "ACT_AS_OTHER")
    target = db.session.get(User, requested_id)
    if target is None:
        raise NotFoundError(f"{label} not found")
    return target.id


def _load_for_change(model, record_id: int, actor: User, label: str):
    query = lock_for_update(db.session.query(model).filter_by(id=record_id))
    record = query.first()
    if record is None:
        raise NotFoundError(f"{label} not found")
    require_access(actor, "MODIFY_ANY_TRADE", owner_ids=record.owner_ids())
    return record


# -- Purchases --

def record_purchase(
    actor: User,
    product_id: int,
    quantity: int,
    purchase_price: float,
    firm_id: int,
    buyer_id: int | None = None,
) -> Purchase:
    """Record a purchase and add its quantity to the product's stock."""
    enforce_rules_purchase({"quantity": quantity, "purchase_price": purchase_price})
    require_access(actor, "RECORD_TRADES")
    buyer = _resolve_counterparty(actor, buyer_id, "buyer")

    def _op():
        _ensure_firm(firm_id)
        product = _get_product(product_id, lock=True)

        purchase = Purchase(
            product_id=product.id,
            firm_id=firm_id,
            buyer_id=buyer,
            user_id=actor.id,
            quantity=quantity,
            purchase_price=purchase_price,
        )
        db.session.add(purchase)
        db.session.flush()

        product.quantity += quantity
        product.purchase_history.append(
            PurchaseHistoryEntry(
                purchase_id=purchase.id,
                vendor_id=firm_id,
                price=purchase_price,
                quantity=quantity,
                date=utcnow(),
            )
        )
        db.session.commit()
        return purchase

    return run_with_retry(_op)


def update_purchase(
    actor: User,
    purchase_id: int,
    quantity: int | None = None,
    purchase_price: float | None = None,
    buyer_id: int | None = None,
    firm_id: int | None = None,
) -> Purchase:
    """
    Apply changes to a purchase and move stock by (new - old) quantity.

    product_id cannot be changed; delete and re-record instead.
    """
    patch = {}
    if quantity is not None:
        patch["quantity"] = quantity
    if purchase_price is not None:
        patch["purchase_price"] = purchase_price
    enforce_rules_purchase(patch)

    def _op():
        purchase = _load_for_change(Purchase, purchase_id, actor, "purchase")
        new_buyer = (
            _resolve_counterparty(actor, buyer_id, "buyer")
            if buyer_id is not None and buyer_id != purchase.buyer_id
            else purchase.buyer_id
        )
        if firm_id is not None and firm_id != purchase.firm_id:
            _ensure_firm(firm_id)
        product = _get_product(purchase.product_id, lock=True)

        delta = (quantity - purchase.quantity) if quantity is not None else 0

        purchase.buyer_id = new_buyer
        if firm_id is not None:
            purchase.firm_id = firm_id
        if quantity is not None:
            purchase.quantity = quantity
        if purchase_price is not None:
            purchase.purchase_price = purchase_price

        product.quantity += delta
        product.purchase_history.append(
            PurchaseHistoryEntry(
                purchase_id=purchase.id,
                vendor_id=purchase.firm_id,
                price=purchase.purchase_price,
                quantity=delta,
                date=utcnow(),
            )
        )
        db.session.commit()
        return purchase

    return run_with_retry(_op)


def delete_purchase(actor: User, purchase_id: int) -> None:
    """Remove a purchase and take its quantity back out of stock."""

    def _op():
        purchase = _load_for_change(Purchase, purchase_id, actor, "purchase")
        product = (
            lock_for_update(db.session.query(Product).filter_by(id=purchase.product_id)).first()
        )
        if product is not None:
            product.quantity -= purchase.quantity
            product.purchase_history.append(
                PurchaseHistoryEntry(
                    purchase_id=purchase.id,
                    vendor_id=purchase.firm_id,
                    price=purchase.purchase_price,
                    quantity=-purchase.quantity,
                    date=utcnow(),
                )
            )
        db.session.delete(purchase)
        db.session.commit()

    run_with_retry(_op)


def get_purchase(actor: User, purchase_id: int) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if purchase is None:
        raise NotFoundError("purchase not found")
    require_access(actor, "VIEW_ALL_TRADES", owner_ids=purchase.owner_ids())
    return purchase


def list_purchases(actor: User, lq: ListQuery) -> tuple[list[Purchase], dict]:
    query = db.session.query(Purchase)
    if not sees_all_trades(actor):
        _require_own_trades_view(actor)
        query = query.filter(or_(Purchase.user_id == actor.id, Purchase.buyer_id == actor.id))
    return apply_list_query(query, Purchase, lq)


# -- Sells --

def record_sell(
    actor: User,
    product_id: int,
    quantity: int,
    sell_price: float,
    seller_id: int | None = None,
) -> Sell:
    """Record a sell and take its quantity out of stock."""
    enforce_rules_sell({"quantity": quantity, "sell_price": sell_price})
    require_access(actor, "RECORD_TRADES")
    seller = _resolve_counterparty(actor, seller_id, "seller")

    def _op():
        product = _get_product(product_id, lock=True)
        if product.quantity < quantity:
            raise InsufficientStockError(available=product.quantity, requested=quantity)

        sell = Sell(
            product_id=product.id,
            seller_id=seller,
            user_id=actor.id,
            quantity=quantity,
            sell_price=sell_price,
        )
        db.session.add(sell)
        db.session.flush()

        product.quantity -= quantity
        product.sell_history.append(
            SellHistoryEntry(
                sell_id=sell.id,
                seller_id=seller,
                price=sell_price,
                quantity=quantity,
                date=utcnow(),
            )
        )
        db.session.commit()
        return sell

    return run_with_retry(_op)


def update_sell(
    actor: User,
    sell_id: int,
    quantity: int | None = None,
    sell_price: float | None = None,
    seller_id: int | None = None,
) -> Sell:
    """
    Apply changes to a sell and move stock by -(new - old) quantity.

    Raises InsufficientStockError before writing anything when the sell grows
    by more than is on hand.
    """
    patch = {}
    if quantity is not None:
        patch["quantity"] = quantity
    if sell_price is not None:
        patch["sell_price"] = sell_price
    enforce_rules_sell(patch)

    def _op():
        sell = _load_for_change(Sell, sell_id, actor, "sell")
        new_seller = (
            _resolve_counterparty(actor, seller_id, "seller")
            if seller_id is not None and seller_id != sell.seller_id
            else sell.seller_id
        )
        product = _get_product(sell.product_id, lock=True)

        delta = (quantity - sell.quantity) if quantity is not None else 0
        if delta > 0 and product.quantity < delta:
            raise InsufficientStockError(available=product.quantity, requested=delta)

        sell.seller_id = new_seller
        if quantity is not None:
            sell.quantity = quantity
        if sell_price is not None:
            sell.sell_price = sell_price

        product.quantity -= delta
        product.sell_history.append(
            SellHistoryEntry(
                sell_id=sell.id,
                seller_id=sell.seller_id,
                price=sell.sell_price,
                quantity=delta,
                date=utcnow(),
            )
        )
        db.session.commit()
        return sell

    return run_with_retry(_op)


def delete_sell(actor: User, sell_id: int) -> None:
    """Remove a sell and return its quantity to stock."""

    def _op():
        sell = _load_for_change(Sell, sell_id, actor, "sell")
        product = lock_for_update(db.session.query(Product).filter_by(id=sell.product_id)).first()
        if product is not None:
            product.quantity += sell.quantity
            product.sell_history.append(
                SellHistoryEntry(
                    sell_id=sell.id,
                    seller_id=sell.seller_id,
                    price=sell.sell_price,
                    quantity=-sell.quantity,
                    date=utcnow(),
                )
            )
        db.session.delete(sell)
        db.session.commit()

    run_with_retry(_op)


def get_sell(actor: User, sell_id: int) -> Sell:
    sell = db.session.get(Sell, sell_id)
    if sell is None:
        raise NotFoundError("sell not found")
    require_access(actor, "VIEW_ALL_TRADES", owner_ids=sell.owner_ids())
    return sell


def list_sells(actor: User, lq: ListQuery) -> tuple[list[Sell], dict]:
    query = db.session.query(Sell)
    if not sees_all_trades(actor):
        _require_own_trades_view(actor)
        query = query.filter(or_(Sell.user_id == actor.id, Sell.seller_id == actor.id))
    return apply_list_query(query, Sell, lq)


def _require_own_trades_view(actor: User) -> None:
    if "VIEW_OWN_TRADES" not in user_permissions(actor):
        require_access(actor, "VIEW_ALL_TRADES")


__all__ = [
    "InsufficientStockError",
    "NotFoundError",
    "record_purchase",
    "update_purchase",
    "delete_purchase",
    "get_purchase",
    "list_purchases",
    "record_sell",
    "update_sell",
    "delete_sell",
    "get_sell",
    "list_sells",
]
