import pytest

from shop_console.errors import TableContractError
from shop_console.table.columns import ColumnDef, RowStore, find_column, resolve_field, validate_columns


def test_resolve_field_prefers_literal_key_over_dotted_path() -> None:
    row = {"category.name": "literal", "category": {"name": "nested"}}

    assert resolve_field(row, "category.name") == "literal"
    assert resolve_field({"category": {"name": "nested"}}, "category.name") == "nested"
    assert resolve_field({"category": None}, "category.name") is None
    assert resolve_field({"name": "x"}, "missing") is None


def test_column_accessor_and_render() -> None:
    column = ColumnDef(
        key="total",
        label="Total",
        accessor=lambda row: row["qty"] * row["unit"],
        render=lambda value, row: f"{value} FCFA",
    )
    row = {"qty": 2, "unit": 5}

    assert column.value(row) == 10
    assert column.display(row) == "10 FCFA"


def test_validate_columns_rejects_duplicate_and_empty_keys() -> None:
    with pytest.raises(TableContractError) as duplicate:
        validate_columns([ColumnDef(key="name", label="A"), ColumnDef(key="name", label="B")])
    assert duplicate.value.code == "DUPLICATE_COLUMN_KEY"

    with pytest.raises(TableContractError) as empty:
        validate_columns([ColumnDef(key="", label="A")])
    assert empty.value.code == "EMPTY_COLUMN_KEY"


def test_find_column() -> None:
    columns = (ColumnDef(key="name", label="Name"),)

    assert find_column(columns, "name") is columns[0]
    assert find_column(columns, "price") is None
    assert find_column(columns, None) is None


def test_row_store_indexes_by_id_and_keeps_order() -> None:
    store = RowStore.from_rows([{"id": "b"}, {"id": "a"}])

    assert store.ids == ("b", "a")
    assert "a" in store
    assert store.get("a") == {"id": "a"}
    assert store.get("zz") is None
    assert len(store) == 2


def test_row_store_rejects_missing_and_duplicate_ids() -> None:
    with pytest.raises(TableContractError) as missing:
        RowStore.from_rows([{"id": 1}, {"name": "no id"}])
    assert missing.value.code == "MISSING_ROW_ID"
    assert missing.value.details == {"position": 1}

    with pytest.raises(TableContractError) as duplicate:
        RowStore.from_rows([{"id": 1}, {"id": 1}])
    assert duplicate.value.code == "DUPLICATE_ROW_ID"


def test_row_store_generation_increases_per_snapshot() -> None:
    first = RowStore.from_rows([{"id": 1}])
    second = RowStore.from_rows([{"id": 1}])

    assert second.generation > first.generation


def test_row_store_custom_id_field() -> None:
    store = RowStore.from_rows([{"sku": "A-1"}], id_field="sku")

    assert store.ids == ("A-1",)
    assert store.row_id({"sku": "A-1"}) == "A-1"
