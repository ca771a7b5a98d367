import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}
_ROOT_LOGGER = "shop_console"
_REDACTED_FIELDS = {"access_token", "token", "authorization", "password", "secret"}

_configured_level: str | None = None


def _env_level() -> str:
    level = (os.getenv("SHOP_CONSOLE_LOG_LEVEL") or "INFO").strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(_configured_level or _env_level())
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def configure_logging(level: str) -> None:
    """Apply ``level`` to every console logger, including ones created later."""
    global _configured_level
    normalized = level.strip().upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    _configured_level = normalized
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and (name == _ROOT_LOGGER or name.startswith(f"{_ROOT_LOGGER}.")):
            logger.setLevel(normalized)


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    trace_id: str | None,
    outcome: str,
    **fields: Any,
) -> None:
    payload: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": "INFO" if outcome != "error" else "ERROR",
        "module": module,
        "action": action,
        "trace_id": trace_id,
        "outcome": outcome,
    }
    for key, value in fields.items():
        if key.lower() in _REDACTED_FIELDS:
            continue
        payload[key] = value
    level = logging.ERROR if outcome == "error" else logging.INFO
    logger.log(level, json.dumps(payload, default=str))
