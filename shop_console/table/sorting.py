from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Literal

from shop_console.table.columns import ColumnDef, Row

SortDirection = Literal["asc", "desc"]

# Type ranks keep the key total when a column mixes value types.
_RANK_NUMBER = 0
_RANK_DATE = 1
_RANK_TEXT = 2
_RANK_OTHER = 3
_RANK_MISSING = 4


def normalize_direction(direction: str | None) -> SortDirection:
    return "desc" if str(direction or "asc").lower() == "desc" else "asc"


def sort_key(value: Any) -> tuple[int, Any]:
    if value is None:
        return (_RANK_MISSING, 0)
    if isinstance(value, (bool, int, float, Decimal)):
        if _is_nan(value):
            return (_RANK_MISSING, 0)
        return (_RANK_NUMBER, value)
    if isinstance(value, datetime):
        aware = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        return (_RANK_DATE, aware.timestamp())
    if isinstance(value, date):
        return (_RANK_DATE, datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp())
    if isinstance(value, str):
        return (_RANK_TEXT, value.casefold())
    return (_RANK_OTHER, str(value).casefold())


def sort_rows(rows: Iterable[Row], column: ColumnDef | None, direction: str = "asc") -> list[Row]:
    if column is None or not column.sortable:
        return list(rows)

    ascending = sorted(rows, key=lambda row: sort_key(column.value(row)))
    if normalize_direction(direction) == "desc":
        ascending.reverse()
    return ascending


def next_sort(
    current_column: str | None,
    current_direction: str,
    clicked: str,
) -> tuple[str, SortDirection]:
    if current_column == clicked:
        return clicked, "desc" if normalize_direction(current_direction) == "asc" else "asc"
    return clicked, "asc"


def _is_nan(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_nan()
    return isinstance(value, float) and math.isnan(value)
