"""
Row filtering, ordering and the net-worth procedure, evaluated in Python.

Both concrete backends keep rows as plain dicts of JSON values, so the
same helpers serve both.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence
from uuid import uuid4

from family_finance.backend.interface import Filters, OrderBy, Row


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def matches(row: Row, filters: Filters) -> bool:
    """True when every equality predicate holds on `row`."""
    return all(row.get(column) == value for column, value in filters.items())


def sort_rows(rows: Iterable[Row], order: Sequence[OrderBy]) -> list[Row]:
    """
    Sort by each term, last term first, relying on sort stability.

    Nulls are partitioned out rather than compared.
    """
    result = list(rows)
    for term in reversed(order):
        present = [r for r in result if r.get(term.column) is not None]
        missing = [r for r in result if r.get(term.column) is None]
        present.sort(key=lambda r: r[term.column], reverse=not term.ascending)
        nulls_first = term.nulls_first if term.nulls_first is not None else not term.ascending
        result = missing + present if nulls_first else present + missing
    return result


def apply_query(
    rows: Iterable[Row],
    filters: Filters,
    order: Sequence[OrderBy] = (),
    limit: Optional[int] = None,
) -> list[Row]:
    """Filter first, then order, then cut."""
    selected = [dict(r) for r in rows if matches(r, filters)]
    selected = sort_rows(selected, order)
    if limit is not None:
        selected = selected[:limit]
    return selected


def with_row_defaults(row: Row) -> Row:
    """Fill in `id` and timestamps the way the backend would."""
    stored = dict(row)
    now = utcnow_iso()
    stored.setdefault("id", str(uuid4()))
    stored.setdefault("created_at", now)
    stored.setdefault("updated_at", now)
    return stored


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def calculate_net_worth(
    user_id: str,
    assets: Iterable[Row],
    liabilities: Iterable[Row],
) -> list[Row]:
    """
    Python rendition of the `calculate_net_worth` procedure.

    Assets count at their current value when set, otherwise at their
    purchase value; liabilities count at their remaining amount.
    """
    total_assets = sum(
        (
            _to_decimal(a.get("current_value") if a.get("current_value") is not None else a.get("value"))
            for a in assets
            if a.get("user_id") == user_id
        ),
        Decimal("0"),
    )
    total_liabilities = sum(
        (_to_decimal(l.get("remaining_amount")) for l in liabilities if l.get("user_id") == user_id),
        Decimal("0"),
    )
    return [{
        "total_assets": str(total_assets),
        "total_liabilities": str(total_liabilities),
        "net_worth": str(total_assets - total_liabilities),
    }]
