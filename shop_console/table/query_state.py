from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from shop_console.table.filter_panel import clean_predicates
from shop_console.table.pagination import clamp_page
from shop_console.table.sorting import SortDirection, next_sort, normalize_direction

DEFAULT_ITEMS_PER_PAGE = 10


@dataclass(frozen=True)
class QueryState:
    search_term: str = ""
    sort_column: str | None = None
    sort_direction: SortDirection = "asc"
    current_page: int = 1
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    filters: Mapping[str, Any] = field(default_factory=dict)


def apply_search(state: QueryState, term: str | None) -> QueryState:
    term = term or ""
    if term == state.search_term:
        return state
    return replace(state, search_term=term, current_page=1)


def apply_filters(state: QueryState, predicates: Mapping[str, Any]) -> QueryState:
    cleaned = clean_predicates(predicates)
    if cleaned == dict(state.filters):
        return state
    return replace(state, filters=cleaned, current_page=1)


def apply_sort(state: QueryState, column_key: str) -> QueryState:
    column, direction = next_sort(state.sort_column, state.sort_direction, column_key)
    return replace(state, sort_column=column, sort_direction=direction)


def set_sort(state: QueryState, column_key: str | None, direction: str = "asc") -> QueryState:
    return replace(state, sort_column=column_key, sort_direction=normalize_direction(direction))


def change_page(state: QueryState, page: int) -> QueryState:
    page = max(1, int(page))
    if page == state.current_page:
        return state
    return replace(state, current_page=page)


def next_page(state: QueryState, total_pages: int) -> QueryState:
    return change_page(state, clamp_page(state.current_page + 1, total_pages))


def prev_page(state: QueryState) -> QueryState:
    return change_page(state, state.current_page - 1)


def change_page_size(state: QueryState, size: int) -> QueryState:
    if size <= 0:
        raise ValueError(f"items_per_page must be greater than 0, got {size}")
    return replace(state, items_per_page=size)


def clamp_to(state: QueryState, total_pages: int) -> QueryState:
    return change_page(state, clamp_page(state.current_page, total_pages))


def default_query_state(items_per_page: int = DEFAULT_ITEMS_PER_PAGE) -> QueryState:
    return QueryState(items_per_page=items_per_page)
