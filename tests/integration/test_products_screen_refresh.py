import asyncio

import httpx
import pytest

from shop_console.config import ConsoleSettings
from shop_console.data_source.context import RequestContext
from shop_console.data_source.http_source import ApiDataSource
from shop_console.data_source.loader import SnapshotLoader
from shop_console.data_source.normalizers import normalize_product
from shop_console.errors import DataSourceError
from shop_console.table.columns import ColumnDef
from shop_console.table.engine import TableConfig, TableEngine
from shop_console.table.filter_panel import FilterDef, FilterType

SETTINGS = ConsoleSettings(api_base_url="http://shop.test/api/", retry_max_attempts=2, retry_backoff_ms=0, items_per_page=2)

CATEGORIES = [{"id": 1, "name": "Clothes"}, {"id": 2, "name": "Shirts", "parent_id": 1}]


def _products(*ids: int) -> dict:
    return {
        "success": True,
        "data": {
            "products": {
                "data": [
                    {"id": pid, "name": f"Product {pid}", "base_price": pid * 1000, "category_id": 2}
                    for pid in ids
                ],
                "current_page": 1,
                "last_page": 1,
                "total": len(ids),
            }
        },
    }


def _columns() -> list[ColumnDef]:
    return [
        ColumnDef(key="name", label="Name"),
        ColumnDef(key="price", label="Price"),
        ColumnDef(key="category_label", label="Category"),
    ]


def test_refresh_through_http_source_populates_engine_and_prunes_selection() -> None:
    snapshots = [_products(1, 2, 3), _products(1, 3)]
    seen_auth: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_auth.append(request.headers.get("Authorization", ""))
        return httpx.Response(200, json=snapshots[len(seen_auth) - 1])

    source = ApiDataSource(SETTINGS, transport=httpx.MockTransport(handler))
    loader = SnapshotLoader(source.endpoint("/admin/products"), lambda raw: normalize_product(raw, CATEGORIES))
    engine = TableEngine(
        _columns(),
        config=TableConfig.from_settings(SETTINGS),
        filters=(FilterDef(name="price", label="Price", type=FilterType.RANGE),),
        table_key="products",
    )
    context = RequestContext(access_token="tok-admin", actor_role="admin")

    async def scenario() -> None:
        async with source:
            await loader.refresh(engine, context, {"per_page": 100})
            assert engine.current_page().total_pages == 2
            assert engine.store.get(2)["category_label"] == "Clothes > Shirts"

            engine.select_all_visible(True)
            assert engine.selection.ids == (1, 2, 3)

            await loader.refresh(engine, context)

    asyncio.run(scenario())

    assert seen_auth == ["Bearer tok-admin", "Bearer tok-admin"]
    assert engine.selection.ids == (1, 3)
    engine.apply_filters({"price_min": 2500})
    assert [row["id"] for row in engine.visible_rows()] == [3]


def test_unauthorized_refresh_keeps_previous_rows() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"code": "AUTH_INVALID_TOKEN", "message": "expired", "trace_id": "trace-401"})

    source = ApiDataSource(SETTINGS, transport=httpx.MockTransport(handler))
    loader = SnapshotLoader(source.endpoint("/admin/products"), normalize_product)
    engine = TableEngine(_columns(), [{"id": 9, "name": "cached"}])

    async def scenario() -> None:
        async with source:
            await loader.refresh(engine, RequestContext(access_token="old"))

    with pytest.raises(DataSourceError) as exc:
        asyncio.run(scenario())

    assert exc.value.code == "AUTH_INVALID_TOKEN"
    assert exc.value.trace_id == "trace-401"
    assert engine.store.ids == (9,)
