from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from shop_console.errors import BulkActionBusyError, BulkActionError, ConsoleError, TableContractError
from shop_console.infrastructure.errors.error_mapper import ErrorMapper
from shop_console.infrastructure.logging.logger import get_logger, log_action
from shop_console.infrastructure.tracing import new_trace_id
from shop_console.table.columns import RowId

BulkHandler = Callable[[str, list[RowId]], Awaitable[Any]]

logger = get_logger("shop_console.bulk_actions")


@dataclass(frozen=True)
class BulkActionDef:
    key: str
    label: str
    destructive: bool = False


DEFAULT_BULK_ACTIONS: tuple[BulkActionDef, ...] = (
    BulkActionDef(key="view", label="View"),
    BulkActionDef(key="edit", label="Edit"),
    BulkActionDef(key="delete", label="Delete", destructive=True),
)

PRIMARY_ACTION_SLOTS = 2


@dataclass(frozen=True)
class BulkActionResult:
    action_key: str
    ids: list[RowId]
    outcome: str
    trace_id: str | None = None
    response: Any = None
    summary: dict[str, int] = field(default_factory=dict)


def summarize_bulk_results(results: list[dict]) -> dict[str, int]:
    total = len(results)
    success = sum(1 for item in results if item.get("result") == "success")
    failed = total - success
    return {"total": total, "success": success, "failed": failed}


class BulkActionDispatcher:
    """Runs one bulk action at a time against a batch of row identifiers."""

    def __init__(
        self,
        handler: BulkHandler,
        actions: Sequence[BulkActionDef] | None = None,
        *,
        module: str = "table",
    ) -> None:
        self._handler = handler
        self.actions: tuple[BulkActionDef, ...] = tuple(actions) if actions else DEFAULT_BULK_ACTIONS
        self.module = module
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def primary_actions(self) -> tuple[BulkActionDef, ...]:
        return self.actions[:PRIMARY_ACTION_SLOTS]

    def overflow_actions(self) -> tuple[BulkActionDef, ...]:
        return self.actions[PRIMARY_ACTION_SLOTS:]

    def get_action(self, action_key: str) -> BulkActionDef:
        action = next((item for item in self.actions if item.key == action_key), None)
        if action is None:
            raise TableContractError(
                code="UNKNOWN_BULK_ACTION",
                message=f"Unknown bulk action: {action_key}",
                details={"action": action_key, "available": [item.key for item in self.actions]},
            )
        return action

    async def dispatch(self, action_key: str, ids: Sequence[RowId]) -> BulkActionResult:
        self.get_action(action_key)
        batch = list(ids)
        if not batch:
            return BulkActionResult(action_key=action_key, ids=[], outcome="skipped")
        if self._busy:
            raise BulkActionBusyError(
                code="BULK_ACTION_IN_PROGRESS",
                message="Another bulk action is still running",
                details={"action": action_key},
            )

        trace_id = new_trace_id()
        self._busy = True
        try:
            response = await self._handler(action_key, batch)
        except Exception as exc:
            log_action(logger, self.module, f"bulk.{action_key}", trace_id, "error", count=len(batch))
            cause = exc if isinstance(exc, ConsoleError) else None
            raise BulkActionError(
                code="BULK_ACTION_FAILED",
                message=str(exc) or exc.__class__.__name__,
                details={"action": action_key, "ids": [str(item) for item in batch], "cause": ErrorMapper.to_payload(exc)},
                trace_id=cause.trace_id if cause and cause.trace_id else trace_id,
            ) from exc
        finally:
            self._busy = False

        summary: dict[str, int] = {}
        if isinstance(response, list) and all(isinstance(item, dict) for item in response):
            summary = summarize_bulk_results(response)
        log_action(logger, self.module, f"bulk.{action_key}", trace_id, "success", count=len(batch))
        return BulkActionResult(
            action_key=action_key,
            ids=batch,
            outcome="success",
            trace_id=trace_id,
            response=response,
            summary=summary,
        )
