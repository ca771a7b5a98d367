"""Table engine behind the admin list screens.

Pipeline: RowStore -> search -> filter predicates -> sort -> paginate.
Selection is keyed by row id and lives beside the pipeline, so it survives
re-filtering and re-sorting; bulk actions act on the whole selection, not
just the rows on the current page.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shop_console.config import SELECT_ALL_SCOPES, ConsoleSettings
from shop_console.errors import TableContractError
from shop_console.export.csv_exporter import export_rows
from shop_console.infrastructure.logging.logger import get_logger, log_action
from shop_console.table import query_state as qs
from shop_console.table.bulk_actions import BulkActionDef, BulkActionDispatcher, BulkActionResult, BulkHandler
from shop_console.table.columns import ColumnDef, Row, RowId, RowStore, find_column, validate_columns
from shop_console.table.filter_panel import FilterDef, FilterPanel, apply_predicates
from shop_console.table.optimistic import OptimisticPatches
from shop_console.table.pagination import Page, count_pages, paginate, single_page
from shop_console.table.search import filter_rows
from shop_console.table.selection import SelectionAggregate, SelectionModel
from shop_console.table.sorting import sort_rows

logger = get_logger("shop_console.table")


@dataclass(frozen=True)
class TableConfig:
    searchable: bool = True
    pagination: bool = True
    items_per_page: int = qs.DEFAULT_ITEMS_PER_PAGE
    selectable: bool = True
    sortable: bool = True
    select_all_scope: str = "visible"
    clear_selection_on_reload: bool = False
    id_field: str = "id"
    optimistic_ttl_seconds: float = 2.0
    export_dir: str = "out/exports"

    def __post_init__(self) -> None:
        if self.items_per_page <= 0:
            raise ValueError(f"items_per_page must be greater than 0, got {self.items_per_page}")
        if self.select_all_scope not in SELECT_ALL_SCOPES:
            raise ValueError(f"select_all_scope must be one of {sorted(SELECT_ALL_SCOPES)}")

    @classmethod
    def from_settings(cls, settings: ConsoleSettings, **overrides: Any) -> "TableConfig":
        values: dict[str, Any] = {
            "items_per_page": settings.items_per_page,
            "select_all_scope": settings.select_all_scope,
            "clear_selection_on_reload": settings.clear_selection_on_reload,
            "optimistic_ttl_seconds": settings.optimistic_ttl_seconds,
            "export_dir": settings.export_dir,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class TableEvents:
    on_selection_change: Callable[[list[RowId]], None] | None = None
    on_sort: Callable[[str | None, str], None] | None = None
    on_filter_apply: Callable[[dict[str, Any]], None] | None = None
    on_filter_reset: Callable[[], None] | None = None
    on_page_change: Callable[[int], None] | None = None


@dataclass(frozen=True)
class TableView:
    columns: tuple[ColumnDef, ...]
    page: Page
    visible_count: int
    total_count: int
    selected_ids: tuple[RowId, ...]
    selection: SelectionAggregate
    busy: bool
    query: qs.QueryState
    pending_ids: tuple[RowId, ...] = field(default_factory=tuple)

    @property
    def all_selected(self) -> bool:
        return self.selection is SelectionAggregate.ALL

    @property
    def indeterminate(self) -> bool:
        return self.selection is SelectionAggregate.SOME

    @property
    def empty(self) -> bool:
        return self.visible_count == 0

    def render(self) -> dict[str, Any]:
        return {
            "columns": [{"key": column.key, "label": column.label, "sortable": column.sortable} for column in self.columns],
            "rows": [{column.key: column.display(row) for column in self.columns} for row in self.page.rows],
            "page": self.page.page,
            "total_pages": self.page.total_pages,
            "summary": self.page.summary(),
            "visible_count": self.visible_count,
            "total_count": self.total_count,
            "selected_ids": list(self.selected_ids),
            "all_selected": self.all_selected,
            "indeterminate": self.indeterminate,
            "busy": self.busy,
            "empty": self.empty,
            "search_term": self.query.search_term,
            "sort_column": self.query.sort_column,
            "sort_direction": self.query.sort_direction,
            "filters": dict(self.query.filters),
            "pending_ids": list(self.pending_ids),
        }


class TableEngine:
    def __init__(
        self,
        columns: Sequence[ColumnDef],
        rows: Iterable[Row] = (),
        *,
        config: TableConfig | None = None,
        events: TableEvents | None = None,
        filters: Sequence[FilterDef] = (),
        bulk_handler: BulkHandler | None = None,
        bulk_actions: Sequence[BulkActionDef] | None = None,
        table_key: str = "table",
        query: qs.QueryState | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.columns = validate_columns(columns)
        self.config = config or TableConfig()
        self.events = events or TableEvents()
        self.table_key = table_key
        self.filter_defs: tuple[FilterDef, ...] = tuple(filters)
        self._query = query or qs.default_query_state(self.config.items_per_page)
        self._selection = SelectionModel()
        self._patches = OptimisticPatches(ttl_seconds=self.config.optimistic_ttl_seconds, now=clock)
        self._dispatcher = (
            BulkActionDispatcher(bulk_handler, bulk_actions, module=table_key) if bulk_handler is not None else None
        )
        self._panel: FilterPanel | None = None
        self._store = RowStore.from_rows(rows, id_field=self.config.id_field)
        self._clamp()

    @property
    def store(self) -> RowStore:
        return self._store

    @property
    def query(self) -> qs.QueryState:
        return self._query

    @property
    def selection(self) -> SelectionModel:
        return self._selection

    @property
    def busy(self) -> bool:
        return bool(self._dispatcher and self._dispatcher.busy)

    @property
    def bulk_actions(self) -> tuple[BulkActionDef, ...]:
        return self._dispatcher.actions if self._dispatcher else ()

    def load(self, rows: Iterable[Row]) -> RowStore:
        store = RowStore.from_rows(rows, id_field=self.config.id_field)
        reconciled = self._patches.reconcile(store)
        self._store = store
        if self.config.clear_selection_on_reload:
            self._set_selection(self._selection.clear())
        else:
            self._set_selection(self._selection.prune(store.id_set))
        self._clamp()
        log_action(
            logger,
            self.table_key,
            "snapshot.load",
            None,
            "success",
            rows=len(store),
            generation=store.generation,
            patches_overridden=len(reconciled["overridden"]),
        )
        return store

    # Query pipeline

    def visible_rows(self) -> list[Row]:
        rows = self._patches.overlay(self._store.rows, self.config.id_field)
        if self.config.searchable:
            rows = filter_rows(rows, self._query.search_term, self.columns)
        rows = apply_predicates(rows, self.filter_defs, self._query.filters)
        column = find_column(self.columns, self._query.sort_column) if self.config.sortable else None
        return sort_rows(rows, column, self._query.sort_direction)

    def visible_ids(self) -> list[RowId]:
        return [row.get(self.config.id_field) for row in self.visible_rows()]

    def current_page(self) -> Page:
        visible = self.visible_rows()
        if not self.config.pagination:
            return single_page(visible)
        return paginate(visible, self._query.current_page, self._query.items_per_page)

    def total_pages(self) -> int:
        if not self.config.pagination:
            return 1
        return count_pages(len(self.visible_rows()), self._query.items_per_page)

    def search(self, term: str | None) -> None:
        self._set_query(qs.apply_search(self._query, term))

    def sort_by(self, column_key: str) -> None:
        if not self._sortable(column_key):
            return
        self._set_query(qs.apply_sort(self._query, column_key))
        self._emit_sort()

    def set_sort(self, column_key: str | None, direction: str = "asc") -> None:
        if column_key is not None and not self._sortable(column_key):
            return
        self._set_query(qs.set_sort(self._query, column_key, direction))
        self._emit_sort()

    def go_to_page(self, page: int) -> None:
        self._set_query(qs.clamp_to(qs.change_page(self._query, page), self.total_pages()))

    def next_page(self) -> None:
        self._set_query(qs.next_page(self._query, self.total_pages()))

    def prev_page(self) -> None:
        self._set_query(qs.prev_page(self._query))

    def set_page_size(self, size: int) -> None:
        self._set_query(qs.change_page_size(self._query, size))

    def apply_filters(self, predicates: Mapping[str, Any]) -> None:
        previous = self._query.filters
        self._set_query(qs.apply_filters(self._query, predicates))
        if self._query.filters == previous:
            return
        applied = dict(self._query.filters)
        log_action(logger, self.table_key, "filters.apply", None, "success", filters=sorted(applied))
        if self.events.on_filter_apply:
            self.events.on_filter_apply(applied)

    def reset_filters(self) -> None:
        if not self._query.filters:
            return
        self._set_query(qs.apply_filters(self._query, {}))
        if self.events.on_filter_reset:
            self.events.on_filter_reset()

    @property
    def filter_panel(self) -> FilterPanel:
        if self._panel is None:
            self._panel = FilterPanel(
                self.filter_defs,
                on_apply=self.apply_filters,
                on_reset=lambda _empty: self.reset_filters(),
            )
        return self._panel

    # Selection

    def select(self, row_id: RowId, checked: bool = True) -> None:
        if not self.config.selectable:
            return
        if checked and row_id not in self._store:
            return
        self._set_selection(self._selection.select_one(row_id, checked))

    def toggle(self, row_id: RowId) -> None:
        self.select(row_id, row_id not in self._selection)

    def select_all_visible(self, checked: bool = True) -> None:
        if not self.config.selectable:
            return
        self._set_selection(self._selection.select_all(self._scope_ids(), checked))

    def clear_selection(self) -> None:
        self._set_selection(self._selection.clear())

    def is_all_selected(self) -> bool:
        return self._selection.is_all_selected(self._scope_ids())

    def is_indeterminate(self) -> bool:
        return self._selection.is_indeterminate(self._scope_ids())

    def selected_rows(self) -> list[Row]:
        rows = (self._store.get(row_id) for row_id in self._selection.ids)
        return [row for row in rows if row is not None]

    # Bulk actions

    async def run_bulk_action(self, action_key: str) -> BulkActionResult:
        if self._dispatcher is None:
            raise TableContractError(code="BULK_ACTIONS_DISABLED", message="No bulk-action handler configured")
        result = await self._dispatcher.dispatch(action_key, list(self._selection.ids))
        if result.outcome == "success":
            self._set_selection(self._selection.clear())
        return result

    # Optimistic updates

    def patch_row(self, row_id: RowId, changes: Mapping[str, Any]) -> None:
        if row_id not in self._store:
            return
        self._patches.apply(row_id, changes)

    def revert_patch(self, row_id: RowId) -> None:
        self._patches.revert(row_id)

    def is_pending(self, row_id: RowId) -> bool:
        return self._patches.is_pending(row_id)

    # Rendering and export

    def view(self) -> TableView:
        visible = self.visible_rows()
        page = (
            paginate(visible, self._query.current_page, self._query.items_per_page)
            if self.config.pagination
            else single_page(visible)
        )
        scope = self._scope_ids(visible=visible, page=page)
        return TableView(
            columns=self.columns,
            page=page,
            visible_count=len(visible),
            total_count=len(self._store),
            selected_ids=self._selection.ids,
            selection=self._selection.aggregate(scope),
            busy=self.busy,
            query=self._query,
            pending_ids=tuple(self._patches.pending_ids()),
        )

    def export_csv(self, output_dir: str | None = None, scope: str = "visible") -> Path:
        rows = self.selected_rows() if scope == "selected" else self.visible_rows()
        path = export_rows(
            table_key=self.table_key,
            rows=rows,
            columns=self.columns,
            output_dir=output_dir or self.config.export_dir,
            filters=self._query.filters,
            search_term=self._query.search_term,
        )
        log_action(logger, self.table_key, "export.csv", None, "success", rows=len(rows), scope=scope)
        return path

    # Internals

    def _sortable(self, column_key: str) -> bool:
        column = find_column(self.columns, column_key)
        if column is None:
            raise TableContractError(
                code="UNKNOWN_COLUMN",
                message=f"Unknown column: {column_key}",
                details={"key": column_key},
            )
        return self.config.sortable and column.sortable

    def _scope_ids(self, visible: list[Row] | None = None, page: Page | None = None) -> list[RowId]:
        id_field = self.config.id_field
        if self.config.select_all_scope == "page":
            current = page or self.current_page()
            return [row.get(id_field) for row in current.rows]
        rows = visible if visible is not None else self.visible_rows()
        return [row.get(id_field) for row in rows]

    def _clamp(self) -> None:
        self._set_query(qs.clamp_to(self._query, self.total_pages()))

    def _set_query(self, new: qs.QueryState) -> None:
        if new is self._query:
            return
        previous_page = self._query.current_page
        # total_pages() derives from the new search, filters and page size
        self._query = new
        self._query = qs.clamp_to(new, self.total_pages())
        if self._query.current_page != previous_page and self.events.on_page_change:
            self.events.on_page_change(self._query.current_page)

    def _set_selection(self, new: SelectionModel) -> None:
        if new.ids == self._selection.ids:
            return
        self._selection = new
        if self.events.on_selection_change:
            self.events.on_selection_change(list(new.ids))

    def _emit_sort(self) -> None:
        if self.events.on_sort:
            self.events.on_sort(self._query.sort_column, self._query.sort_direction)
