# Overview: Service-layer operations for reporting; loads visible trades and feeds the analytics functions.

from __future__ import annotations

import re
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Category, Product, Purchase, Sell, User
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from . import analytics
from .permission_service import require_access, sees_all_trades

MAX_TOP_N = 50

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """Inclusive UTC bounds; a date-only end runs to the last microsecond of that day."""
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("start/end must be ISO-8601 datetimes")
    # A bare date as end covers that whole day
    if end_dt and _DATE_ONLY.match(end.strip()):
        end_dt = end_dt + timedelta(days=1) - timedelta(microseconds=1)
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def parse_top_n(raw, default: int = 3) -> int:
    if raw is None or raw == "":
        return default
    try:
        n = int(raw)
    except (TypeError, ValueError):
        raise ReportError("n must be an integer")
    if n < 1 or n > MAX_TOP_N:
        raise ReportError(f"n must be between 1 and {MAX_TOP_N}")
    return n


def cost_ratio() -> float:
    return float(current_app.config.get("ASSUMED_COST_RATIO", analytics.DEFAULT_COST_RATIO))


def load_dataset(actor: User, start: str | None = None, end: str | None = None) -> dict:
    """
    Collections visible to actor, as plain dicts.

    Roles without VIEW_ALL_TRADES only see trades they recorded or are the
    buyer/seller of. Catalog and users are not scoped: names are needed to
    label the rankings.
    """
    require_access(actor, "VIEW_REPORTS")
    start_dt, end_dt = _parse_range(start, end)

    purchases_q = db.session.query(Purchase)
    sells_q = db.session.query(Sell)
    if not sees_all_trades(actor):
        purchases_q = purchases_q.filter(or_(Purchase.user_id == actor.id, Purchase.buyer_id == actor.id))
        sells_q = sells_q.filter(or_(Sell.user_id == actor.id, Sell.seller_id == actor.id))
    if start_dt:
        purchases_q = purchases_q.filter(Purchase.created_at >= start_dt)
        sells_q = sells_q.filter(Sell.created_at >= start_dt)
    if end_dt:
        purchases_q = purchases_q.filter(Purchase.created_at <= end_dt)
        sells_q = sells_q.filter(Sell.created_at <= end_dt)

    return {
        "products": [p.to_dict() for p in db.session.query(Product).order_by(Product.id.asc()).all()],
        "categories": [c.to_dict() for c in db.session.query(Category).order_by(Category.id.asc()).all()],
        "purchases": [p.to_dict() for p in purchases_q.order_by(Purchase.id.asc()).all()],
        "sells": [s.to_dict() for s in sells_q.order_by(Sell.id.asc()).all()],
        "users": [u.to_dict() for u in db.session.query(User).order_by(User.id.asc()).all()],
        "scoped": not sees_all_trades(actor),
    }


def category_report(actor: User, category_name: str, start=None, end=None) -> dict:
    data = load_dataset(actor, start, end)
    return analytics.category_summary(
        category_name,
        data["products"],
        data["purchases"],
        data["sells"],
        data["users"],
        categories=data["categories"],
        assumed_cost_ratio=cost_ratio(),
    )


def categories_report(actor: User, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.category_breakdown(
        data["products"],
        data["purchases"],
        data["sells"],
        categories=data["categories"],
        assumed_cost_ratio=cost_ratio(),
    )


def top_products_report(actor: User, n: int = 3, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.top_n_products(data["purchases"], data["products"], n=n)


def top_buyers_report(actor: User, n: int = 3, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.top_n_buyers(data["purchases"], data["users"], n=n)


def top_sellers_report(actor: User, n: int = 3, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.top_n_sellers(data["sells"], data["users"], n=n)


def top_profitable_products_report(actor: User, n: int = 3, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.top_n_profitable_products(
        data["products"], data["purchases"], data["sells"], n=n, assumed_cost_ratio=cost_ratio()
    )


def top_profit_people_report(actor: User, n: int = 3, start=None, end=None) -> list[dict]:
    data = load_dataset(actor, start, end)
    return analytics.top_n_profit_people(
        data["products"], data["purchases"], data["sells"], data["users"], n=n, assumed_cost_ratio=cost_ratio()
    )


def overview_report(actor: User, n: int = 3, start=None, end=None) -> dict:
    """Dashboard payload: headline totals plus every top-N ranking."""
    data = load_dataset(actor, start, end)
    ratio = cost_ratio()
    products, purchases, sells, users = data["products"], data["purchases"], data["sells"], data["users"]

    spent = sum(p["amount"] for p in purchases)
    gained = sum(s["amount"] for s in sells)
    by_category = analytics.category_breakdown(
        products, purchases, sells, categories=data["categories"], assumed_cost_ratio=ratio
    )

    return {
        "generated_at": to_utc_z(utcnow()),
        "scoped_to_user": data["scoped"],
        "assumed_cost_ratio": ratio,
        "totals": {
            "product_count": len(products),
            "stock_units": sum(p["quantity"] for p in products),
            "stock_value": sum(row["stock_value"] for row in by_category),
            "purchase_count": len(purchases),
            "sell_count": len(sells),
            "total_money_spent": spent,
            "total_money_gained": gained,
            "profit": sum(row["profit"] for row in by_category),
            "net_cash_flow": gained - spent,
        },
        "categories": by_category,
        "top_products": analytics.top_n_products(purchases, products, n=n),
        "top_buyers": analytics.top_n_buyers(purchases, users, n=n),
        "top_sellers": analytics.top_n_sellers(sells, users, n=n),
        "top_profitable_products": analytics.top_n_profitable_products(
            products, purchases, sells, n=n, assumed_cost_ratio=ratio
        ),
        "top_profit_people": analytics.top_n_profit_people(
            products, purchases, sells, users, n=n, assumed_cost_ratio=ratio
        ),
    }
