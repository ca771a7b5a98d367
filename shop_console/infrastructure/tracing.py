from __future__ import annotations

import uuid
from typing import Mapping

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "x-trace-id")


def new_trace_id() -> str:
    return str(uuid.uuid4())


def trace_id_from_headers(headers: Mapping[str, str]) -> str | None:
    for key in TRACE_HEADER_ALIASES:
        trace_id = headers.get(key)
        if trace_id:
            return trace_id
    return None
