"""Row selection keyed by identifier.

The selection never stores row objects or positions, so it survives
re-filtering, re-sorting and page changes. Aggregate flags are always
computed against the caller's visible identifiers.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import Enum

from shop_console.table.columns import RowId


class SelectionAggregate(str, Enum):
    NONE = "none"
    SOME = "some"
    ALL = "all"


@dataclass(frozen=True)
class SelectionModel:
    ids: tuple[RowId, ...] = ()

    def __contains__(self, row_id: object) -> bool:
        return row_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self):
        return iter(self.ids)

    def select_one(self, row_id: RowId, checked: bool) -> "SelectionModel":
        if checked:
            if row_id in self.ids:
                return self
            return SelectionModel(ids=self.ids + (row_id,))
        if row_id not in self.ids:
            return self
        return SelectionModel(ids=tuple(item for item in self.ids if item != row_id))

    def toggle(self, row_id: RowId) -> "SelectionModel":
        return self.select_one(row_id, row_id not in self.ids)

    def select_all(self, visible_ids: Iterable[RowId], checked: bool) -> "SelectionModel":
        visible = list(dict.fromkeys(visible_ids))
        if checked:
            current = set(self.ids)
            added = tuple(row_id for row_id in visible if row_id not in current)
            return SelectionModel(ids=self.ids + added) if added else self
        removed = set(visible)
        kept = tuple(row_id for row_id in self.ids if row_id not in removed)
        return SelectionModel(ids=kept) if len(kept) != len(self.ids) else self

    def prune(self, valid_ids: Collection[RowId]) -> "SelectionModel":
        kept = tuple(row_id for row_id in self.ids if row_id in valid_ids)
        return SelectionModel(ids=kept) if len(kept) != len(self.ids) else self

    def clear(self) -> "SelectionModel":
        return self if not self.ids else SelectionModel()

    def selected_visible_count(self, visible_ids: Iterable[RowId]) -> int:
        current = set(self.ids)
        return sum(1 for row_id in set(visible_ids) if row_id in current)

    def is_all_selected(self, visible_ids: Iterable[RowId]) -> bool:
        visible = set(visible_ids)
        return bool(visible) and self.selected_visible_count(visible) == len(visible)

    def is_indeterminate(self, visible_ids: Iterable[RowId]) -> bool:
        visible = set(visible_ids)
        count = self.selected_visible_count(visible)
        return 0 < count < len(visible)

    def aggregate(self, visible_ids: Iterable[RowId]) -> SelectionAggregate:
        visible = set(visible_ids)
        if self.is_all_selected(visible):
            return SelectionAggregate.ALL
        if self.is_indeterminate(visible):
            return SelectionAggregate.SOME
        return SelectionAggregate.NONE
