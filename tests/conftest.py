import pytest

from shop_console.table.columns import ColumnDef


@pytest.fixture
def product_columns() -> list[ColumnDef]:
    return [
        ColumnDef(key="name", label="Name"),
        ColumnDef(key="price", label="Price"),
        ColumnDef(key="status", label="Status"),
        ColumnDef(key="category.name", label="Category"),
    ]


@pytest.fixture
def product_rows() -> list[dict]:
    return [
        {"id": 1, "name": "Red Shirt", "price": 30, "status": "active", "category": {"name": "Clothes"}},
        {"id": 2, "name": "Blue Shirt", "price": 10, "status": "inactive", "category": {"name": "Clothes"}},
        {"id": 3, "name": "Mug", "price": 20, "status": "active", "category": {"name": "Kitchen"}},
        {"id": 4, "name": "Poster", "price": 10, "status": "active", "category": None},
    ]
