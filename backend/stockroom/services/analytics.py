# Overview: Pure aggregation functions over product/purchase/sell/user collections.

"""
Analytics over plain dict collections (the to_dict() shape of the models).

Everything here is a total function: empty or malformed input yields zero
totals, None for "top" selections and empty lists, never an exception.

Profit is margin based everywhere:

    profit = sum over sells of (sell_price - effective_unit_cost) * quantity

effective_unit_cost is the average purchase price of the product, or
assumed_cost_ratio * product price when the product was never purchased.
Cash flow (money gained - money spent) is reported separately as
net_cash_flow.

Rankings are descending and stable: ties keep input order. "Top" picks use a
strict comparison, so the first entity to reach the maximum wins.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

DEFAULT_COST_RATIO = 0.75

UNKNOWN_CATEGORY = "Unknown Category"
UNKNOWN_BRAND = "Unknown Brand"
UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_BUYER = "Unknown Buyer"
UNKNOWN_SELLER = "Unknown Seller"


# -- References --

@dataclass(frozen=True)
class Resolved:
    id: Any
    name: str


@dataclass(frozen=True)
class Unresolved:
    id: Any


Ref = Union[Resolved, Unresolved]

# Fields used as grouping or lookup keys
_KEY_FIELDS = ("id", "product_id", "buyer_id", "seller_id", "category_id", "brand_id")


def _hashable(value) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def build_lookup(rows, name_of=None) -> dict:
    """Index a collection of dicts by id. Mappings are returned unchanged."""
    if rows is None:
        return {}
    if isinstance(rows, Mapping):
        return dict(rows)
    name_of = name_of or (lambda row: row.get("name"))
    return {
        row.get("id"): name_of(row)
        for row in rows
        if isinstance(row, Mapping) and _hashable(row.get("id"))
    }


def to_ref(raw, lookup: Mapping | None = None) -> Ref:
    """
    Turn a raw reference into Resolved or Unresolved.

    raw may be an embedded object ({"id", "name"}) or a bare id to look up
    in lookup (id -> name).
    """
    lookup = lookup or {}
    if isinstance(raw, Mapping):
        ref_id = raw.get("id")
        name = raw.get("name")
        if isinstance(name, str) and name.strip():
            return Resolved(ref_id, name)
        raw = ref_id
    if raw is None or not _hashable(raw):
        return Unresolved(raw)
    name = lookup.get(raw)
    if isinstance(name, str) and name.strip():
        return Resolved(raw, name)
    return Unresolved(raw)


def _resolve_field(record, field: str, lookup: Mapping | None, sentinel: str) -> str:
    # embedded object -> id lookup -> denormalized string -> sentinel
    if not isinstance(record, Mapping):
        return sentinel
    embedded = record.get(field)
    if isinstance(embedded, Mapping):
        ref = to_ref(embedded, lookup)
        if isinstance(ref, Resolved):
            return ref.name
    ref_id = record.get(f"{field}_id")
    if ref_id is not None:
        ref = to_ref(ref_id, lookup)
        if isinstance(ref, Resolved):
            return ref.name
    if isinstance(embedded, str) and embedded.strip():
        return embedded
    denormalized = record.get(f"{field}_name")
    if isinstance(denormalized, str) and denormalized.strip():
        return denormalized
    return sentinel


def resolve_category_name(product, categories=None) -> str:
    return _resolve_field(product, "category", build_lookup(categories), UNKNOWN_CATEGORY)


def resolve_brand_name(product, brands=None) -> str:
    return _resolve_field(product, "brand", build_lookup(brands), UNKNOWN_BRAND)


def product_name(product_id, products) -> str:
    ref = to_ref(product_id, build_lookup(products))
    return ref.name if isinstance(ref, Resolved) else UNKNOWN_PRODUCT


def _display_name(user: Mapping) -> str | None:
    full = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    return full or user.get("username") or None


def user_display_name(user_ref, users, sentinel: str = UNKNOWN_BUYER) -> str:
    """Display name for an embedded user object or a user id."""
    if isinstance(user_ref, Mapping):
        name = _display_name(user_ref)
        if name:
            return name
        user_ref = user_ref.get("id")
    ref = to_ref(user_ref, build_lookup(users, _display_name))
    return ref.name if isinstance(ref, Resolved) else sentinel


# -- Numbers --

_NUMBER_PREFIX = re.compile(r"-?(\d+\.?\d*|\.\d+)")


def parse_number(value) -> float:
    """
    Lenient numeric parse; anything unparseable is 0.

    Strings may use either decimal separator: "1.234" and "1.234.567" are
    thousands-grouped, "1.234,5" is European style, "12,5" is 12.5.
    """
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9,.\-]", "", value)
        if re.fullmatch(r"\d{1,3}(\.\d{3})+", cleaned):
            cleaned = cleaned.replace(".", "")
        elif "," in cleaned and "." in cleaned:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        elif "," in cleaned:
            cleaned = cleaned.replace(",", ".")
        m = _NUMBER_PREFIX.match(cleaned)
        return float(m.group(0)) if m else 0.0
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _amount(record, price_field: str) -> float:
    return parse_number(record.get(price_field)) * parse_number(record.get("quantity"))


# -- Grouping helpers --

def _sum_by(records, key_of, value_of) -> dict:
    """Insertion-ordered totals keyed by key_of(record)."""
    totals: dict = {}
    for record in records:
        key = key_of(record)
        totals[key] = totals.get(key, 0.0) + value_of(record)
    return totals


def _top(totals: dict, *, floor: float | None = 0.0):
    """(key, value) with the largest value; first one wins ties. None if nothing beats floor."""
    best_key, best_value, found = None, floor, False
    for key, value in totals.items():
        if best_value is None or value > best_value:
            best_key, best_value, found = key, value, True
    return (best_key, best_value) if found else None


def _ranked(totals: dict, n: int) -> list[tuple]:
    # sorted() is stable, so equal totals keep insertion order
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[: max(n, 0)]


def _valid(records) -> list:
    """Mappings whose id fields can key a dict; anything else is skipped."""
    return [
        r for r in (records or [])
        if isinstance(r, Mapping) and all(_hashable(r.get(f)) for f in _KEY_FIELDS)
    ]


# -- Cost & profit --

def effective_unit_cost(product, purchases, assumed_cost_ratio: float = DEFAULT_COST_RATIO) -> float:
    """
    Average purchase price of product over purchases, or
    assumed_cost_ratio * product price when it was never purchased.
    """
    product = product if isinstance(product, Mapping) else {}
    pid = product.get("id")
    total_cost = 0.0
    total_qty = 0.0
    for p in _valid(purchases):
        if p.get("product_id") != pid:
            continue
        total_cost += _amount(p, "purchase_price")
        total_qty += parse_number(p.get("quantity"))
    if total_qty > 0:
        return total_cost / total_qty
    return parse_number(product.get("price")) * assumed_cost_ratio


def _unit_costs(products, purchases, assumed_cost_ratio) -> dict:
    """product_id -> effective unit cost, for every product id seen anywhere."""
    by_id = {p.get("id"): p for p in products}
    for rec in purchases:
        by_id.setdefault(rec.get("product_id"), {"id": rec.get("product_id")})
    return {pid: effective_unit_cost(prod, purchases, assumed_cost_ratio) for pid, prod in by_id.items()}


def _sell_margin(sell, unit_costs: dict) -> float:
    cost = unit_costs.get(sell.get("product_id"), 0.0)
    return (parse_number(sell.get("sell_price")) - cost) * parse_number(sell.get("quantity"))


# -- Summaries --

def category_summary(
    category_name: str,
    products,
    purchases,
    sells,
    users,
    categories=None,
    assumed_cost_ratio: float = DEFAULT_COST_RATIO,
) -> dict:
    """Totals and leaders for the products in one category."""
    products = _valid(products)
    purchases = _valid(purchases)
    sells = _valid(sells)
    users = _valid(users)

    category_lookup = build_lookup(categories)
    in_category = [
        p for p in products
        if _resolve_field(p, "category", category_lookup, UNKNOWN_CATEGORY) == category_name
    ]
    ids = {p.get("id") for p in in_category}
    cat_purchases = [p for p in purchases if p.get("product_id") in ids]
    cat_sells = [s for s in sells if s.get("product_id") in ids]

    spent = sum(_amount(p, "purchase_price") for p in cat_purchases)
    gained = sum(_amount(s, "sell_price") for s in cat_sells)

    unit_costs = _unit_costs(in_category, cat_purchases, assumed_cost_ratio)
    margin_by_product = _sum_by(cat_sells, lambda s: s.get("product_id"), lambda s: _sell_margin(s, unit_costs))
    profit = sum(margin_by_product.values())

    top_sold = _top(_sum_by(cat_sells, lambda s: s.get("product_id"), lambda s: parse_number(s.get("quantity"))))
    top_purchased = _top(
        _sum_by(cat_purchases, lambda p: p.get("product_id"), lambda p: parse_number(p.get("quantity")))
    )

    # Every product in the category is ranked, including ones never sold
    per_product = {p.get("id"): margin_by_product.get(p.get("id"), 0.0) for p in in_category}
    profitable = [
        {"product_id": pid, "name": product_name(pid, products), "profit": value}
        for pid, value in _ranked(per_product, 3)
    ]

    buyers = [p for p in cat_purchases if p.get("buyer_id") is not None]
    sellers = [s for s in cat_sells if s.get("seller_id") is not None]
    big_buyer = _top(_sum_by(buyers, lambda p: p.get("buyer_id"), lambda p: _amount(p, "purchase_price")))
    big_seller = _top(_sum_by(sellers, lambda s: s.get("seller_id"), lambda s: _amount(s, "sell_price")))
    best_person = _top(
        _sum_by(sellers, lambda s: s.get("seller_id"), lambda s: _sell_margin(s, unit_costs)),
        floor=None,
    )

    return {
        "category": category_name,
        "product_count": len(in_category),
        "total_money_spent": spent,
        "total_money_gained": gained,
        "profit": profit,
        "net_cash_flow": gained - spent,
        "top_sold_product": (
            {"product_id": top_sold[0], "name": product_name(top_sold[0], products), "sold_count": top_sold[1]}
            if top_sold else None
        ),
        "top_purchased_product": (
            {
                "product_id": top_purchased[0],
                "name": product_name(top_purchased[0], products),
                "purchase_count": top_purchased[1],
            }
            if top_purchased else None
        ),
        "profitable_products": profitable,
        "big_buyer": (
            {"user_id": big_buyer[0], "name": user_display_name(big_buyer[0], users, UNKNOWN_BUYER),
             "total_spent": big_buyer[1]}
            if big_buyer else None
        ),
        "big_seller": (
            {"user_id": big_seller[0], "name": user_display_name(big_seller[0], users, UNKNOWN_SELLER),
             "total_sold": big_seller[1]}
            if big_seller else None
        ),
        "best_profit_person": (
            {"user_id": best_person[0], "name": user_display_name(best_person[0], users, UNKNOWN_SELLER),
             "profit": best_person[1]}
            if best_person else None
        ),
    }


def category_breakdown(
    products,
    purchases,
    sells,
    categories=None,
    assumed_cost_ratio: float = DEFAULT_COST_RATIO,
) -> list[dict]:
    """
    One row per category (in order of first appearance among products):
    stock value, money spent, money gained and margin profit.

    Trades whose product is not in products are grouped under
    "Unknown Category".
    """
    products = _valid(products)
    purchases = _valid(purchases)
    sells = _valid(sells)
    category_lookup = build_lookup(categories)

    category_of = {
        p.get("id"): _resolve_field(p, "category", category_lookup, UNKNOWN_CATEGORY) for p in products
    }
    unit_costs = _unit_costs(products, purchases, assumed_cost_ratio)

    rows: dict = {}

    def _row(name):
        if name not in rows:
            rows[name] = {
                "category": name,
                "product_count": 0,
                "stock_value": 0.0,
                "total_money_spent": 0.0,
                "total_money_gained": 0.0,
                "profit": 0.0,
            }
        return rows[name]

    for p in products:
        row = _row(category_of[p.get("id")])
        row["product_count"] += 1
        row["stock_value"] += parse_number(p.get("price")) * parse_number(p.get("quantity"))
    for rec in purchases:
        _row(category_of.get(rec.get("product_id"), UNKNOWN_CATEGORY))["total_money_spent"] += _amount(
            rec, "purchase_price"
        )
    for rec in sells:
        row = _row(category_of.get(rec.get("product_id"), UNKNOWN_CATEGORY))
        row["total_money_gained"] += _amount(rec, "sell_price")
        row["profit"] += _sell_margin(rec, unit_costs)

    return list(rows.values())


# -- Rankings --

def top_n_products(purchases, products, n: int = 3) -> list[dict]:
    """Products ranked by total money spent purchasing them."""
    products = _valid(products)
    totals = _sum_by(_valid(purchases), lambda p: p.get("product_id"), lambda p: _amount(p, "purchase_price"))
    return [
        {"product_id": pid, "name": product_name(pid, products), "total_spent": value}
        for pid, value in _ranked(totals, n)
    ]


def top_n_buyers(purchases, users, n: int = 3) -> list[dict]:
    """Buyers ranked by total paid."""
    users = _valid(users)
    totals = _sum_by(_valid(purchases), lambda p: p.get("buyer_id"), lambda p: _amount(p, "purchase_price"))
    return [
        {"user_id": uid, "name": user_display_name(uid, users, UNKNOWN_BUYER), "total_spent": value}
        for uid, value in _ranked(totals, n)
    ]


def top_n_sellers(sells, users, n: int = 3) -> list[dict]:
    """Sellers ranked by total sold."""
    users = _valid(users)
    totals = _sum_by(_valid(sells), lambda s: s.get("seller_id"), lambda s: _amount(s, "sell_price"))
    return [
        {"user_id": uid, "name": user_display_name(uid, users, UNKNOWN_SELLER), "total_sold": value}
        for uid, value in _ranked(totals, n)
    ]


def top_n_profitable_products(
    products,
    purchases,
    sells,
    n: int = 3,
    assumed_cost_ratio: float = DEFAULT_COST_RATIO,
) -> list[dict]:
    """Sold products ranked by margin profit."""
    products = _valid(products)
    purchases = _valid(purchases)
    unit_costs = _unit_costs(products, purchases, assumed_cost_ratio)
    totals = _sum_by(_valid(sells), lambda s: s.get("product_id"), lambda s: _sell_margin(s, unit_costs))
    return [
        {"product_id": pid, "name": product_name(pid, products), "profit": value}
        for pid, value in _ranked(totals, n)
    ]


def top_n_profit_people(
    products,
    purchases,
    sells,
    users,
    n: int = 3,
    assumed_cost_ratio: float = DEFAULT_COST_RATIO,
) -> list[dict]:
    """Sellers ranked by the margin profit of their sells."""
    products = _valid(products)
    purchases = _valid(purchases)
    users = _valid(users)
    unit_costs = _unit_costs(products, purchases, assumed_cost_ratio)
    totals = _sum_by(_valid(sells), lambda s: s.get("seller_id"), lambda s: _sell_margin(s, unit_costs))
    return [
        {"user_id": uid, "name": user_display_name(uid, users, UNKNOWN_SELLER), "profit": value}
        for uid, value in _ranked(totals, n)
    ]
