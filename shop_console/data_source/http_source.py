from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from shop_console.config import ConsoleSettings
from shop_console.data_source.context import RequestContext
from shop_console.errors import DataSourceError
from shop_console.infrastructure.logging.logger import get_logger, log_action
from shop_console.infrastructure.tracing import trace_id_from_headers

logger = get_logger("shop_console.data_source")


def error_from_response(response: httpx.Response, context: RequestContext) -> DataSourceError:
    trace_id = trace_id_from_headers(response.headers) or context.trace_id
    try:
        payload = response.json()
    except ValueError:
        payload = None

    details: dict[str, Any] = {"status_code": response.status_code}
    if isinstance(payload, dict):
        if payload.get("details") is not None:
            details["details"] = payload["details"]
        return DataSourceError(
            code=str(payload.get("code") or "HTTP_ERROR"),
            message=str(payload.get("message") or response.text or "HTTP request failed"),
            details=details,
            trace_id=payload.get("trace_id") or trace_id,
        )
    return DataSourceError(
        code="HTTP_ERROR",
        message=response.text or "HTTP request failed",
        details=details,
        trace_id=trace_id,
    )


class ApiDataSource:
    """Async client for the shop back office list endpoints.

    GET requests are retried on transport errors and 5xx responses with a
    linear backoff; other methods are sent once. Credentials come from the
    ``RequestContext`` passed to each call, never from ambient state.
    """

    def __init__(
        self,
        settings: ConsoleSettings,
        client: httpx.AsyncClient | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout_seconds,
            transport=transport,
        )
        self._retry_max_attempts = max(1, settings.retry_max_attempts)
        self._retry_backoff_ms = max(0, settings.retry_backoff_ms)

    async def __aenter__(self) -> "ApiDataSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        context: RequestContext,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        normalized_path = path if path.startswith("/") else f"/{path}"
        allow_retry = method.upper() == "GET"
        request_params = {key: value for key, value in (params or {}).items() if value is not None}

        for attempt in range(1, self._retry_max_attempts + 1):
            try:
                response = await self._client.request(
                    method=method,
                    url=normalized_path,
                    json=json_body,
                    headers=context.headers(),
                    params=request_params,
                )
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if (not allow_retry) or attempt >= self._retry_max_attempts:
                    log_action(logger, "data_source", f"{method.lower()} {normalized_path}", context.trace_id, "error")
                    raise DataSourceError(
                        code="NETWORK_ERROR",
                        message="Network error while calling the shop API",
                        details={"cause": str(exc), "attempts": attempt},
                        trace_id=context.trace_id,
                    ) from exc
                await self._backoff(attempt)
                continue

            if response.status_code >= 400:
                if allow_retry and response.status_code >= 500 and attempt < self._retry_max_attempts:
                    await self._backoff(attempt)
                    continue
                log_action(
                    logger,
                    "data_source",
                    f"{method.lower()} {normalized_path}",
                    context.trace_id,
                    "error",
                    status_code=response.status_code,
                )
                raise error_from_response(response, context)

            log_action(
                logger,
                "data_source",
                f"{method.lower()} {normalized_path}",
                context.trace_id,
                "success",
                status_code=response.status_code,
                attempts=attempt,
            )
            try:
                payload = response.json()
            except ValueError:
                return {}
            return payload if isinstance(payload, dict) else {"data": payload}

        raise DataSourceError(code="NETWORK_ERROR", message="Network error while calling the shop API", details="retry exhausted")

    async def fetch(self, path: str, context: RequestContext, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("GET", path, context, params=params)

    def endpoint(self, path: str) -> Callable[[RequestContext, Mapping[str, Any]], Awaitable[dict[str, Any]]]:
        async def fetch(context: RequestContext, params: Mapping[str, Any]) -> dict[str, Any]:
            return await self.fetch(path, context, dict(params))

        return fetch

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep((self._retry_backoff_ms * attempt) / 1000)
