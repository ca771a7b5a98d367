from shop_console.errors import (
    BulkActionBusyError,
    BulkActionError,
    ConsoleError,
    DataSourceError,
    TableContractError,
)


class ErrorMapper:
    _KNOWN_CODES = {
        "BULK_ACTION_FAILED": ("The bulk action could not be completed.", "Your selection was kept, retry when ready."),
        "BULK_ACTION_IN_PROGRESS": ("A bulk action is already running.", "Wait for it to finish before starting another."),
        "UNKNOWN_BULK_ACTION": ("This action is not available for the table.", "Pick one of the listed actions."),
        "DUPLICATE_COLUMN_KEY": ("The table has two columns with the same key.", "Fix the column definitions."),
        "DUPLICATE_ROW_ID": ("Two rows share the same identifier.", "Check the data source normalization."),
        "MISSING_ROW_ID": ("A row has no identifier.", "Check the data source normalization."),
        "DATA_SOURCE_FAILED": ("Could not load the data.", "Press 'Refresh' to try again."),
        "NETWORK_ERROR": ("The API is unreachable.", "Check the network connection and retry."),
    }

    _STATUS_HINTS = {
        401: ("UNAUTHORIZED", "Your session has expired.", "Sign in again."),
        403: ("PERMISSION_DENIED", "You are not allowed to perform this operation.", "Ask an administrator for access."),
        422: ("VALIDATION_ERROR", "The request was rejected by validation.", "Review the submitted fields."),
        500: ("INTERNAL_ERROR", "The service failed while processing the request.", "Retry and share the trace_id if it persists."),
    }

    @classmethod
    def to_payload(cls, error: Exception) -> dict:
        if isinstance(error, ConsoleError):
            status_code = _status_code(error)
            mapped = cls._STATUS_HINTS.get(status_code) if status_code else None
            if mapped is None and status_code and status_code >= 500:
                mapped = cls._STATUS_HINTS[500]
            if mapped is not None:
                code, message, suggestion = mapped
            else:
                message, suggestion = cls._KNOWN_CODES.get(
                    error.code,
                    (error.message, _default_suggestion(error)),
                )
                code = error.code
            return {
                "code": code,
                "message": message,
                "details": error.details,
                "trace_id": error.trace_id,
                "suggestion": suggestion,
            }
        return {
            "code": "INTERNAL_ERROR",
            "message": str(error) or error.__class__.__name__,
            "details": None,
            "trace_id": None,
            "suggestion": "Retry, and report the incident if it persists.",
        }

    @classmethod
    def to_display_message(cls, error: Exception) -> str:
        payload = cls.to_payload(error)
        return f"[{payload['code']}] {payload['message']} (trace_id={payload['trace_id']})"


def _status_code(error: ConsoleError) -> int | None:
    if isinstance(error.details, dict):
        value = error.details.get("status_code")
        if isinstance(value, int):
            return value
    return None


def _default_suggestion(error: ConsoleError) -> str:
    if isinstance(error, (BulkActionError, BulkActionBusyError)):
        return "Your selection was kept, retry when ready."
    if isinstance(error, DataSourceError):
        return "Press 'Refresh' to try again."
    if isinstance(error, TableContractError):
        return "Fix the table definition or the data normalization."
    return "Contact support with the trace_id."
