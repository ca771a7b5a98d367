from __future__ import annotations

import itertools
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from shop_console.errors import TableContractError

Row = Mapping[str, Any]
RowId = Hashable

_MISSING = object()
_generations = itertools.count(1)


@dataclass(frozen=True)
class ColumnDef:
    key: str
    label: str
    sortable: bool = True
    searchable: bool = True
    accessor: Callable[[Row], Any] | None = None
    render: Callable[[Any, Row], Any] | None = None

    def value(self, row: Row) -> Any:
        if self.accessor is not None:
            return self.accessor(row)
        return resolve_field(row, self.key)

    def display(self, row: Row) -> Any:
        value = self.value(row)
        if self.render is not None:
            return self.render(value, row)
        return value


def resolve_field(row: Row, key: str) -> Any:
    """Look up ``key`` in ``row``, falling back to a dotted path through nested mappings."""
    value = row.get(key, _MISSING)
    if value is not _MISSING:
        return value
    if "." not in key:
        return None
    current: Any = row
    for part in key.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def validate_columns(columns: Iterable[ColumnDef]) -> tuple[ColumnDef, ...]:
    resolved = tuple(columns)
    seen: set[str] = set()
    for column in resolved:
        if not column.key:
            raise TableContractError(code="EMPTY_COLUMN_KEY", message=f"Column {column.label!r} has an empty key")
        if column.key in seen:
            raise TableContractError(
                code="DUPLICATE_COLUMN_KEY",
                message=f"Duplicate column key: {column.key}",
                details={"key": column.key},
            )
        seen.add(column.key)
    return resolved


def find_column(columns: Sequence[ColumnDef], key: str | None) -> ColumnDef | None:
    if key is None:
        return None
    return next((column for column in columns if column.key == key), None)


@dataclass(frozen=True)
class RowStore:
    """Immutable snapshot of the rows behind one table view."""

    rows: tuple[Row, ...] = ()
    id_field: str = "id"
    generation: int = 0
    _index: Mapping[RowId, Row] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_rows(cls, rows: Iterable[Row], id_field: str = "id") -> "RowStore":
        snapshot = tuple(rows)
        index: dict[RowId, Row] = {}
        for position, row in enumerate(snapshot):
            row_id = row.get(id_field)
            if row_id is None:
                raise TableContractError(
                    code="MISSING_ROW_ID",
                    message=f"Row at position {position} has no {id_field!r}",
                    details={"position": position},
                )
            if row_id in index:
                raise TableContractError(
                    code="DUPLICATE_ROW_ID",
                    message=f"Duplicate row identifier: {row_id!r}",
                    details={"id": str(row_id)},
                )
            index[row_id] = row
        return cls(rows=snapshot, id_field=id_field, generation=next(_generations), _index=index)

    @property
    def ids(self) -> tuple[RowId, ...]:
        return tuple(self._index.keys())

    @property
    def id_set(self) -> frozenset[RowId]:
        return frozenset(self._index.keys())

    def row_id(self, row: Row) -> RowId:
        return row.get(self.id_field)

    def get(self, row_id: RowId) -> Row | None:
        return self._index.get(row_id)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._index

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)
