from shop_console.config import ConsoleSettings, load_settings
from shop_console.data_source.context import RequestContext
from shop_console.data_source.http_source import ApiDataSource
from shop_console.data_source.loader import SnapshotLoader
from shop_console.errors import (
    BulkActionBusyError,
    BulkActionError,
    ConsoleError,
    DataSourceError,
    TableContractError,
)
from shop_console.table.bulk_actions import BulkActionDef
from shop_console.table.columns import ColumnDef
from shop_console.table.engine import TableConfig, TableEngine, TableEvents, TableView
from shop_console.table.filter_panel import FilterDef, FilterOption, FilterType

__all__ = [
    "ConsoleSettings",
    "load_settings",
    "RequestContext",
    "ApiDataSource",
    "SnapshotLoader",
    "ConsoleError",
    "TableContractError",
    "BulkActionBusyError",
    "BulkActionError",
    "DataSourceError",
    "BulkActionDef",
    "ColumnDef",
    "TableConfig",
    "TableEngine",
    "TableEvents",
    "TableView",
    "FilterDef",
    "FilterOption",
    "FilterType",
]
