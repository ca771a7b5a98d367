from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from shop_console.data_source.context import RequestContext
from shop_console.data_source.normalizers import DataSourceResponse, normalize_envelope
from shop_console.errors import ConsoleError, DataSourceError
from shop_console.infrastructure.logging.logger import get_logger, log_action
from shop_console.table.engine import TableEngine

Fetch = Callable[[RequestContext, Mapping[str, Any]], Awaitable[Any]]
RowNormalizer = Callable[[Mapping[str, Any]], BaseModel | Mapping[str, Any]]

logger = get_logger("shop_console.loader")


class SnapshotLoader:
    """Fetches one snapshot and hands it to a table engine.

    A failed fetch or a rejected envelope raises ``DataSourceError`` and the
    engine keeps its previous snapshot. No retry, cache or server paging
    happens here.
    """

    def __init__(self, fetch: Fetch, normalizer: RowNormalizer | None = None, *, module: str = "loader") -> None:
        self._fetch = fetch
        self._normalizer = normalizer
        self.module = module
        self.last_response: DataSourceResponse | None = None

    async def refresh(
        self,
        engine: TableEngine,
        context: RequestContext,
        params: Mapping[str, Any] | None = None,
    ) -> DataSourceResponse:
        try:
            payload = await self._fetch(context, dict(params or {}))
        except ConsoleError as exc:
            log_action(logger, self.module, "refresh", context.trace_id, "error", code=exc.code)
            if isinstance(exc, DataSourceError):
                raise
            raise DataSourceError(
                code="DATA_SOURCE_FAILED",
                message=exc.message,
                details=exc.details,
                trace_id=exc.trace_id or context.trace_id,
            ) from exc

        response = normalize_envelope(payload)
        if not response.success:
            log_action(logger, self.module, "refresh", context.trace_id, "error", message=response.message)
            raise DataSourceError(
                code="DATA_SOURCE_FAILED",
                message=response.message or "The data source reported a failure",
                trace_id=context.trace_id,
            )

        try:
            rows = [self._normalize(raw) for raw in response.rows]
        except (ValueError, TypeError) as exc:
            if isinstance(exc, ValidationError):
                details: Any = {"errors": exc.errors(include_url=False, include_context=False)}
            else:
                details = {"cause": str(exc)}
            log_action(logger, self.module, "refresh", context.trace_id, "error", cause=exc.__class__.__name__)
            raise DataSourceError(
                code="DATA_SOURCE_FAILED",
                message="The data source returned rows that could not be normalized",
                details=details,
                trace_id=context.trace_id,
            ) from exc

        engine.load(rows)
        self.last_response = response
        log_action(logger, self.module, "refresh", context.trace_id, "success", rows=len(rows))
        return response

    def _normalize(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        if self._normalizer is None:
            return dict(raw)
        normalized = self._normalizer(raw)
        if isinstance(normalized, BaseModel):
            return normalized.model_dump()
        return dict(normalized)
