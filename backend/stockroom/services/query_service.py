# Overview: List query conventions shared by every collection endpoint.

"""
Query-string list conventions:

    ?filter[field]=value     exact match (value coerced to the column type)
    ?search[field]=text      case-insensitive substring match (text columns only)
    ?sort[field]=asc|desc    ordering; several sort keys apply in the order given
    ?limit=N                 page size; 0 or -1 returns every record
    ?page=N                  1-based page number

Unknown fields raise ValidationError so typos surface as 400s instead of
silently returning unfiltered data.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from sqlalchemy import String, Text

from ..validation import ValidationError, coerce_column_value

_PARAM_RE = re.compile(r"^(filter|search|sort)\[(\w+)\]$")

SORT_DIRECTIONS = {"asc": "asc", "1": "asc", "desc": "desc", "-1": "desc"}


@dataclass
class ListQuery:
    filter: dict = field(default_factory=dict)
    search: dict = field(default_factory=dict)
    sort: dict = field(default_factory=dict)
    limit: int = 20
    page: int = 1

    @property
    def unlimited(self) -> bool:
        return self.limit <= 0


def _parse_int(raw, name: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def parse_list_args(args, model, *, default_limit: int = 20) -> ListQuery:
    """Build a ListQuery from request.args, validating field names against model."""
    columns = {c.key: c for c in model.__mapper__.columns}
    lq = ListQuery(limit=default_limit)

    for key in args.keys():
        if key in ("limit", "page"):
            continue
        m = _PARAM_RE.match(key)
        if not m:
            raise ValidationError(f"Unknown query parameter: {key}")
        kind, name = m.groups()
        if name not in columns:
            raise ValidationError(f"Unknown field in {kind}: {name}")
        raw = args.get(key)
        col = columns[name]

        if kind == "filter":
            lq.filter[name] = coerce_column_value(col, raw)
        elif kind == "search":
            if not isinstance(col.type, (String, Text)):
                raise ValidationError(f"search is only supported on text fields: {name}")
            lq.search[name] = raw
        else:
            direction = SORT_DIRECTIONS.get(str(raw).strip().lower())
            if direction is None:
                raise ValidationError(f"sort[{name}] must be asc or desc")
            lq.sort[name] = direction

    if "limit" in args:
        lq.limit = _parse_int(args.get("limit"), "limit")
        if lq.limit < -1:
            raise ValidationError("limit must be >= -1")
    if "page" in args:
        lq.page = _parse_int(args.get("page"), "page")
        if lq.page < 1:
            raise ValidationError("page must be >= 1")

    return lq


def apply_list_query(query, model, lq: ListQuery) -> tuple[list, dict]:
    """
    Run query with lq applied. Returns (rows, details) where details is the
    paging metadata echoed back in list responses.
    """
    for name, value in lq.filter.items():
        query = query.filter(getattr(model, name) == value)
    for name, text in lq.search.items():
        query = query.filter(getattr(model, name).ilike(f"%{text}%"))

    total = query.order_by(None).count()

    ordering = []
    for name, direction in lq.sort.items():
        col = getattr(model, name)
        ordering.append(col.desc() if direction == "desc" else col.asc())
    # Stable tiebreaker
    ordering.append(model.id.asc())
    query = query.order_by(*ordering)

    if lq.unlimited:
        rows = query.all()
        total_pages = 1
        page = 1
        limit = total
        skip = 0
    else:
        limit = lq.limit
        page = lq.page
        skip = (page - 1) * limit
        rows = query.offset(skip).limit(limit).all()
        total_pages = max(math.ceil(total / limit), 1)

    details = {
        "filter": lq.filter,
        "search": lq.search,
        "sort": lq.sort,
        "limit": limit,
        "skip": skip,
        "page": page,
        "total_records": total,
        "pages": {
            "previous": page - 1 if page > 1 else None,
            "current": page,
            "next": page + 1 if page < total_pages else None,
            "total": total_pages,
        },
    }
    return rows, details
