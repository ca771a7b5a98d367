from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ConsoleError(Exception):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class TableContractError(ConsoleError):
    """Structural misuse of the table engine: duplicate keys, missing ids."""


class BulkActionBusyError(ConsoleError):
    """A bulk action is already in flight for this table."""


class BulkActionError(ConsoleError):
    """The host bulk-action handler failed; the selection is kept for retry."""


class DataSourceError(ConsoleError):
    """The host data source did not produce a usable snapshot."""
