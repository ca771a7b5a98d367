from __future__ import annotations

from dataclasses import dataclass, field

from shop_console.infrastructure.tracing import TRACE_HEADER, new_trace_id


@dataclass(frozen=True)
class RequestContext:
    """Credentials and trace id handed explicitly to every fetch."""

    access_token: str | None = None
    actor_role: str | None = None
    trace_id: str = field(default_factory=new_trace_id)

    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", TRACE_HEADER: self.trace_id}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers
