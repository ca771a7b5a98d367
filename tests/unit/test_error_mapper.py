from shop_console.errors import BulkActionError, DataSourceError, TableContractError
from shop_console.infrastructure.errors.error_mapper import ErrorMapper
from shop_console.infrastructure.tracing import new_trace_id, trace_id_from_headers


def test_known_code_uses_catalog_message() -> None:
    error = BulkActionError(code="BULK_ACTION_FAILED", message="boom", trace_id="t-1")

    payload = ErrorMapper.to_payload(error)

    assert payload["code"] == "BULK_ACTION_FAILED"
    assert payload["message"] == "The bulk action could not be completed."
    assert payload["trace_id"] == "t-1"


def test_status_code_wins_over_error_code() -> None:
    unauthorized = DataSourceError(code="AUTH_INVALID_TOKEN", message="bad", details={"status_code": 401})
    upstream = DataSourceError(code="HTTP_ERROR", message="bad gateway", details={"status_code": 502})

    assert ErrorMapper.to_payload(unauthorized)["code"] == "UNAUTHORIZED"
    assert ErrorMapper.to_payload(upstream)["code"] == "INTERNAL_ERROR"


def test_unknown_console_error_keeps_its_own_message() -> None:
    error = TableContractError(code="UNKNOWN_COLUMN", message="Unknown column: colour")

    payload = ErrorMapper.to_payload(error)

    assert payload["code"] == "UNKNOWN_COLUMN"
    assert payload["message"] == "Unknown column: colour"
    assert payload["suggestion"] == "Fix the table definition or the data normalization."


def test_plain_exception_maps_to_internal_error() -> None:
    payload = ErrorMapper.to_payload(KeyError("id"))

    assert payload["code"] == "INTERNAL_ERROR"
    assert ErrorMapper.to_display_message(ValueError("x")) == "[INTERNAL_ERROR] x (trace_id=None)"


def test_console_error_str() -> None:
    assert str(DataSourceError(code="NETWORK_ERROR", message="down")) == "NETWORK_ERROR: down"


def test_trace_id_helpers() -> None:
    assert trace_id_from_headers({"x-trace-id": "abc"}) == "abc"
    assert trace_id_from_headers({}) is None
    assert new_trace_id() != new_trace_id()
