from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from shop_console.table.columns import ColumnDef, Row
from shop_console.table.search import search_text

EMPTY_VALUE = "—"
SENSITIVE_KEYS = {"token", "refresh_token", "secret", "password", "access_token"}


def normalize_value(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, str):
        clean = value.strip()
        return clean or EMPTY_VALUE
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
    text = search_text(value)
    return text if text else EMPTY_VALUE


def column_header(column: ColumnDef) -> str:
    return column.label or column.key


def sanitize_row(row: Row, columns: Sequence[ColumnDef]) -> dict[str, str]:
    sanitized: dict[str, str] = {}
    for column in columns:
        if any(token in column.key.lower() for token in SENSITIVE_KEYS):
            sanitized[column_header(column)] = EMPTY_VALUE
            continue
        sanitized[column_header(column)] = normalize_value(column.value(row))
    return sanitized


def export_rows(
    *,
    table_key: str,
    rows: Sequence[Row],
    columns: Sequence[ColumnDef],
    output_dir: str = "out/exports",
    filters: Mapping[str, Any] | None = None,
    search_term: str | None = None,
) -> Path:
    destination = Path(output_dir)
    destination.mkdir(parents=True, exist_ok=True)

    now = datetime.now().astimezone()
    timestamp = now.strftime("%Y%m%d_%H%M%S")
    path = destination / f"{table_key}_{timestamp}.csv"

    headers = [column_header(column) for column in columns]
    with path.open("w", newline="", encoding="utf-8-sig") as handle:
        handle.write(f"# timestamp_local: {now.isoformat()}\n")
        handle.write(f"# table: {table_key}\n")
        handle.write(f"# filters: {dict(filters or {})}\n")
        handle.write(f"# search: {search_term or ''}\n")
        writer = csv.DictWriter(handle, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(sanitize_row(row, columns))

    return path
