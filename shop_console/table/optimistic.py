from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from shop_console.table.columns import Row, RowId, RowStore

PENDING_FLAG = "_pending"


@dataclass(frozen=True)
class Patch:
    changes: Mapping[str, Any]
    expires_at: float


class OptimisticPatches:
    """Local row patches shown until the next authoritative snapshot.

    Reconciliation is last-authoritative-wins: a successful reload drops every
    patch. If the reload fails the patch stays visible until it expires and
    the row falls back to the last authoritative values.
    """

    def __init__(self, ttl_seconds: float = 2.0, now: Callable[[], float] | None = None) -> None:
        self.ttl_seconds = max(0.1, ttl_seconds)
        self._now = now or time.monotonic
        self._patches: dict[RowId, Patch] = {}

    def apply(self, row_id: RowId, changes: Mapping[str, Any]) -> None:
        current = self._live(row_id)
        merged = {**(current.changes if current else {}), **changes}
        self._patches[row_id] = Patch(changes=merged, expires_at=self._now() + self.ttl_seconds)

    def revert(self, row_id: RowId) -> None:
        self._patches.pop(row_id, None)

    def is_pending(self, row_id: RowId) -> bool:
        return self._live(row_id) is not None

    def pending_ids(self) -> list[RowId]:
        self._drop_expired()
        return list(self._patches)

    def overlay(self, rows: Iterable[Row], id_field: str = "id") -> list[Row]:
        self._drop_expired()
        if not self._patches:
            return list(rows)
        result: list[Row] = []
        for row in rows:
            patch = self._patches.get(row.get(id_field))
            if patch is None:
                result.append(row)
                continue
            result.append({**row, **patch.changes, PENDING_FLAG: True})
        return result

    def reconcile(self, store: RowStore) -> dict[str, list[RowId]]:
        """Drop every patch against a fresh snapshot; report which ones the server confirmed."""
        confirmed: list[RowId] = []
        overridden: list[RowId] = []
        for row_id, patch in self._patches.items():
            row = store.get(row_id)
            if row is not None and all(row.get(key) == value for key, value in patch.changes.items()):
                confirmed.append(row_id)
            else:
                overridden.append(row_id)
        self._patches.clear()
        return {"confirmed": confirmed, "overridden": overridden}

    def _live(self, row_id: RowId) -> Patch | None:
        patch = self._patches.get(row_id)
        if patch is None:
            return None
        if patch.expires_at <= self._now():
            self._patches.pop(row_id, None)
            return None
        return patch

    def _drop_expired(self) -> None:
        stale = [row_id for row_id, patch in self._patches.items() if patch.expires_at <= self._now()]
        for row_id in stale:
            self._patches.pop(row_id, None)
