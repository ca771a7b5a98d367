import pytest

from shop_console.table import query_state as qs


def test_search_change_resets_page() -> None:
    state = qs.change_page(qs.QueryState(), 3)

    assert qs.apply_search(state, "mug").current_page == 1
    assert qs.apply_search(state, "") is state


def test_same_search_term_keeps_page() -> None:
    state = qs.change_page(qs.QueryState(search_term="mug"), 3)

    assert qs.apply_search(state, "mug") is state


def test_filter_change_resets_page_but_cleaned_equal_filters_do_not() -> None:
    state = qs.change_page(qs.QueryState(filters={"status": "active"}), 2)

    assert qs.apply_filters(state, {"status": "active", "q": ""}) is state
    changed = qs.apply_filters(state, {"status": "inactive"})
    assert changed.current_page == 1
    assert changed.filters == {"status": "inactive"}


def test_sort_and_page_size_do_not_reset_page() -> None:
    state = qs.change_page(qs.QueryState(), 3)

    assert qs.apply_sort(state, "name").current_page == 3
    assert qs.change_page_size(state, 25).current_page == 3


def test_sort_toggles_direction() -> None:
    state = qs.apply_sort(qs.QueryState(), "name")
    assert (state.sort_column, state.sort_direction) == ("name", "asc")

    state = qs.apply_sort(state, "name")
    assert state.sort_direction == "desc"


def test_page_navigation_is_clamped() -> None:
    state = qs.QueryState()

    assert qs.prev_page(state) is state
    assert qs.next_page(state, 2).current_page == 2
    assert qs.next_page(qs.change_page(state, 2), 2).current_page == 2
    assert qs.clamp_to(qs.change_page(state, 9), 3).current_page == 3


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        qs.change_page_size(qs.QueryState(), 0)
