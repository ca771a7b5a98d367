import asyncio

import pytest

from shop_console.data_source.context import RequestContext
from shop_console.data_source.loader import SnapshotLoader
from shop_console.data_source.normalizers import normalize_order, normalize_product
from shop_console.errors import DataSourceError
from shop_console.table.columns import ColumnDef
from shop_console.table.engine import TableEngine

COLUMNS = [ColumnDef(key="name", label="Name"), ColumnDef(key="price", label="Price")]


def _fetch_returning(payload):
    calls = []

    async def fetch(context, params):
        calls.append((context, params))
        if isinstance(payload, Exception):
            raise payload
        return payload

    return fetch, calls


def test_refresh_normalizes_and_loads_rows() -> None:
    fetch, calls = _fetch_returning(
        {"success": True, "data": {"products": {"data": [{"id": 1, "name": "Tee", "base_price": "9"}], "current_page": 1}}}
    )
    engine = TableEngine(COLUMNS)
    context = RequestContext(access_token="tok")

    response = asyncio.run(SnapshotLoader(fetch, normalize_product).refresh(engine, context, {"per_page": 100}))

    assert calls == [(context, {"per_page": 100})]
    assert response.pagination.current_page == 1
    assert engine.store.ids == (1,)
    assert engine.store.get(1)["price"] == 9.0


def test_refresh_without_normalizer_keeps_raw_rows() -> None:
    fetch, _ = _fetch_returning({"data": [{"id": "a", "name": "raw"}]})
    engine = TableEngine(COLUMNS)

    asyncio.run(SnapshotLoader(fetch).refresh(engine, RequestContext()))

    assert engine.store.get("a") == {"id": "a", "name": "raw"}


def test_failed_envelope_leaves_engine_untouched() -> None:
    fetch, _ = _fetch_returning({"success": False, "message": "Unauthenticated."})
    engine = TableEngine(COLUMNS, [{"id": 1, "name": "old"}])
    engine.select(1)
    before = engine.store

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(SnapshotLoader(fetch).refresh(engine, RequestContext(trace_id="t-x")))

    assert exc.value.code == "DATA_SOURCE_FAILED"
    assert exc.value.message == "Unauthenticated."
    assert exc.value.trace_id == "t-x"
    assert engine.store is before
    assert engine.selection.ids == (1,)


def test_transport_error_propagates_as_data_source_error() -> None:
    failure = DataSourceError(code="NETWORK_ERROR", message="down")
    fetch, _ = _fetch_returning(failure)
    engine = TableEngine(COLUMNS)

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(SnapshotLoader(fetch).refresh(engine, RequestContext()))

    assert exc.value is failure


def test_rows_failing_normalization_are_rejected() -> None:
    fetch, _ = _fetch_returning({"data": [{"name": "no id"}]})
    engine = TableEngine(COLUMNS, [{"id": 1}])

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(SnapshotLoader(fetch, normalize_product).refresh(engine, RequestContext()))

    assert exc.value.code == "DATA_SOURCE_FAILED"
    assert engine.store.ids == (1,)


def test_order_with_unreadable_item_count_is_rejected() -> None:
    fetch, _ = _fetch_returning([{"id": 1, "items_summary": {"total_items": "n/a"}}])
    engine = TableEngine(COLUMNS, [{"id": 7}])

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(SnapshotLoader(fetch, normalize_order).refresh(engine, RequestContext()))

    assert exc.value.code == "DATA_SOURCE_FAILED"
    assert engine.store.ids == (7,)


def test_plain_value_error_from_normalizer_is_rejected() -> None:
    def strict(raw):
        raise ValueError(f"unusable row {raw['id']}")

    fetch, _ = _fetch_returning({"data": [{"id": 2}]})
    engine = TableEngine(COLUMNS)

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(SnapshotLoader(fetch, strict).refresh(engine, RequestContext()))

    assert exc.value.code == "DATA_SOURCE_FAILED"
    assert exc.value.details == {"cause": "unusable row 2"}
