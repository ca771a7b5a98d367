from shop_console.table.selection import SelectionAggregate, SelectionModel


def test_select_one_is_idempotent() -> None:
    selection = SelectionModel().select_one(1, True)

    assert selection.select_one(1, True) is selection
    assert selection.ids == (1,)
    assert selection.select_one(1, False).ids == ()
    assert SelectionModel().select_one(9, False).ids == ()


def test_toggle() -> None:
    selection = SelectionModel().toggle("a").toggle("b").toggle("a")

    assert selection.ids == ("b",)


def test_select_all_adds_and_removes_only_visible_ids() -> None:
    selection = SelectionModel(ids=(99,))

    checked = selection.select_all([1, 2, 3], True)
    assert checked.ids == (99, 1, 2, 3)

    unchecked = checked.select_all([1, 2, 3], False)
    assert unchecked.ids == (99,)


def test_aggregate_flags_use_visible_ids_only() -> None:
    selection = SelectionModel(ids=(1, 2, 50))

    assert selection.aggregate([1, 2]) is SelectionAggregate.ALL
    assert selection.aggregate([1, 2, 3]) is SelectionAggregate.SOME
    assert selection.aggregate([7, 8]) is SelectionAggregate.NONE
    assert selection.is_all_selected([]) is False
    assert selection.is_indeterminate([]) is False


def test_all_selected_and_indeterminate_are_exclusive() -> None:
    selection = SelectionModel(ids=(1,))

    for visible in ([1], [1, 2], [2], []):
        assert not (selection.is_all_selected(visible) and selection.is_indeterminate(visible))


def test_prune_drops_ids_absent_from_snapshot() -> None:
    selection = SelectionModel(ids=(1, 2, 3))

    assert selection.prune({1, 3}).ids == (1, 3)
    assert selection.prune({1, 2, 3, 4}) is selection


def test_clear() -> None:
    empty = SelectionModel()

    assert empty.clear() is empty
    assert len(SelectionModel(ids=(1,)).clear()) == 0
