from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import Any

from shop_console.table.columns import ColumnDef, Row


def search_text(value: Any) -> str | None:
    """Text form of a field value used for substring matching, ``None`` if it cannot match."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        parts = [search_text(item) for item in value.values() if not isinstance(item, (Mapping, list, tuple))]
        return " ".join(part for part in parts if part)
    return str(value)


def row_matches(row: Row, needle: str, columns: Sequence[ColumnDef]) -> bool:
    if columns:
        values: Iterable[Any] = (column.value(row) for column in columns if column.searchable)
    else:
        values = row.values()
    for value in values:
        text = search_text(value)
        if text is not None and needle in text.lower():
            return True
    return False


def filter_rows(rows: Iterable[Row], search_term: str | None, columns: Sequence[ColumnDef]) -> list[Row]:
    if not search_term:
        return list(rows)
    needle = search_term.lower()
    return [row for row in rows if row_matches(row, needle, columns)]
