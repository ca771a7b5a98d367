"""Normalization of the shop API envelopes into flat table rows.

The back office API is inconsistent: list endpoints wrap rows under
``data``, ``data.items``, ``data.products.data`` or a resource-named key,
and products reference their category in four different shapes. Everything
here turns those payloads into canonical row models the table engine can
index by ``id``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRICE_FIELDS = ("price", "base_price", "regular_price", "sale_price")
CATEGORY_SEPARATOR = " > "

_COLLECTION_KEYS = ("items", "rows", "products", "categories", "orders", "customers", "clients")


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number == number else None


class Pagination(BaseModel):
    model_config = ConfigDict(extra="allow")

    current_page: int = 1
    last_page: int = 1
    per_page: int | None = None
    total: int = 0


class DataSourceResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = True
    rows: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination | None = None
    message: str | None = None


class _TimestampedRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _timestamps(cls, value: Any) -> Any:
        return _parse_datetime(value)


class CategoryRow(_TimestampedRow):
    id: int | str
    name: str | None = None
    slug: str | None = None
    parent_id: int | str | None = None
    parent_name: str | None = None
    label: str = ""
    is_active: bool = True
    products_count: int = 0


class ProductRow(_TimestampedRow):
    id: int | str
    name: str | None = None
    sku: str | None = None
    price: float | None = None
    stock_quantity: int | None = None
    is_active: bool = True
    category_id: int | str | None = None
    category_label: str | None = None


class OrderRow(_TimestampedRow):
    id: int | str
    order_number: str | None = None
    status: str | None = None
    total_amount: float = 0.0
    client_name: str | None = None
    client_phone: str | None = None
    total_items: int = 0


class CustomerRow(_TimestampedRow):
    id: int | str
    name: str | None = None
    email: str | None = None
    whatsapp_phone: str | None = None
    customer_type: str | None = None
    total_spent: float = 0.0
    last_order: datetime | str | None = None
    last_login: datetime | str | None = None

    @field_validator("last_order", "last_login", mode="before")
    @classmethod
    def _activity(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            value = value.get("created_at")
        return _parse_datetime(value)


def _extract_rows(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return [dict(item) for item in data if isinstance(item, Mapping)]
    if not isinstance(data, Mapping):
        return []
    for key in _COLLECTION_KEYS:
        if key in data:
            return _extract_rows(data[key])
    if "data" in data:
        return _extract_rows(data["data"])
    return []


def _extract_pagination(data: Any, row_count: int) -> Pagination | None:
    if not isinstance(data, Mapping):
        return None
    block = data.get("pagination")
    if isinstance(block, Mapping):
        return Pagination.model_validate(block)
    meta = data.get("meta")
    if isinstance(meta, Mapping):
        return Pagination(
            total=meta.get("total") or row_count,
            last_page=meta.get("last_page") or 1,
            current_page=meta.get("current_page") or 1,
            per_page=meta.get("per_page"),
        )
    for key in _COLLECTION_KEYS:
        nested = data.get(key)
        if isinstance(nested, Mapping) and "current_page" in nested:
            return Pagination(
                total=nested.get("total") or row_count,
                last_page=nested.get("last_page") or 1,
                current_page=nested.get("current_page") or 1,
                per_page=nested.get("per_page"),
            )
    return None


def normalize_envelope(payload: Any) -> DataSourceResponse:
    """Flatten any list envelope the API returns into ``DataSourceResponse``."""
    if payload is None:
        return DataSourceResponse(success=False, message="Empty response")
    if isinstance(payload, list):
        return DataSourceResponse(rows=_extract_rows(payload))
    if not isinstance(payload, Mapping):
        return DataSourceResponse(success=False, message="Unexpected response shape")

    success = bool(payload.get("success", True))
    message = payload.get("message")
    data = payload.get("data", {k: v for k, v in payload.items() if k not in {"success", "message"}})
    rows = _extract_rows(data)
    return DataSourceResponse(
        success=success,
        rows=rows,
        pagination=_extract_pagination(data, len(rows)),
        message=str(message) if message is not None else None,
    )


def _index_categories(categories: Iterable[Mapping[str, Any]]) -> dict[str, Mapping[str, Any]]:
    return {str(item.get("id")): item for item in categories if isinstance(item, Mapping) and item.get("id") is not None}


def format_category_label(category: Mapping[str, Any], categories: Mapping[str, Mapping[str, Any]] | None = None) -> str:
    name = str(category.get("name") or "")
    parent = category.get("parent")
    if not isinstance(parent, Mapping) and category.get("parent_id") is not None and categories:
        parent = categories.get(str(category["parent_id"]))
    if category.get("parent_id") is not None and isinstance(parent, Mapping) and parent.get("name"):
        return f"{parent['name']}{CATEGORY_SEPARATOR}{name}"
    return name


def resolve_category(raw: Mapping[str, Any]) -> tuple[Any, Mapping[str, Any] | None]:
    """Return ``(category_id, category_object)`` across the four product shapes."""
    category = raw.get("category")
    if isinstance(category, Mapping) and category.get("id") is not None:
        return category["id"], category
    if raw.get("category_id") is not None:
        return raw["category_id"], None
    if isinstance(category, Mapping):
        return category.get("id"), category
    if isinstance(category, (int, str)) and not isinstance(category, bool):
        return category, None
    return None, None


def resolve_price(raw: Mapping[str, Any]) -> float | None:
    for key in PRICE_FIELDS:
        if raw.get(key) is not None:
            return _to_float(raw[key])
    return None


def normalize_category(raw: Mapping[str, Any], categories: Iterable[Mapping[str, Any]] = ()) -> CategoryRow:
    index = _index_categories(categories)
    parent = raw.get("parent")
    parent_name = parent.get("name") if isinstance(parent, Mapping) else None
    if parent_name is None and raw.get("parent_id") is not None:
        parent_name = (index.get(str(raw["parent_id"])) or {}).get("name")
    payload = {key: value for key, value in raw.items() if key != "parent"}
    payload["parent_name"] = parent_name
    payload["label"] = format_category_label(raw, index)
    payload["products_count"] = raw.get("products_count") or 0
    if raw.get("is_active") is None:
        payload.pop("is_active", None)
    return CategoryRow.model_validate(payload)


def normalize_product(raw: Mapping[str, Any], categories: Iterable[Mapping[str, Any]] = ()) -> ProductRow:
    index = _index_categories(categories)
    category_id, category = resolve_category(raw)
    label: str | None = None
    if category is not None and category.get("name"):
        label = format_category_label(category, index)
    elif category_id is not None and str(category_id) in index:
        label = format_category_label(index[str(category_id)], index)

    payload = {key: value for key, value in raw.items() if key != "category"}
    payload["category_id"] = category_id
    payload["category_label"] = label
    payload["price"] = resolve_price(raw)
    if raw.get("is_active") is None:
        payload.pop("is_active", None)
    return ProductRow.model_validate(payload)


def normalize_order(raw: Mapping[str, Any]) -> OrderRow:
    client = raw.get("client") or raw.get("customer") or {}
    if not isinstance(client, Mapping):
        client = {"name": str(client)}
    items = raw.get("items") if isinstance(raw.get("items"), list) else []
    summary = raw.get("items_summary") if isinstance(raw.get("items_summary"), Mapping) else {}
    payload = {key: value for key, value in raw.items() if key not in {"client", "customer"}}
    payload["client_name"] = client.get("name")
    payload["client_phone"] = client.get("whatsapp_phone") or client.get("phone")
    payload["total_amount"] = _to_float(raw.get("total_amount")) or 0.0
    payload["total_items"] = summary.get("total_items") or len(items)
    return OrderRow.model_validate(payload)


def normalize_customer(raw: Mapping[str, Any]) -> CustomerRow:
    payload = dict(raw)
    payload["whatsapp_phone"] = raw.get("whatsapp_phone") or raw.get("phone")
    payload["total_spent"] = _to_float(raw.get("total_spent")) or 0.0
    return CustomerRow.model_validate(payload)


def rows_for_table(models: Iterable[BaseModel]) -> list[dict[str, Any]]:
    return [model.model_dump() for model in models]
