from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from shop_console.infrastructure.logging.logger import LOG_LEVELS, configure_logging

SELECT_ALL_SCOPES = {"visible", "page"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ConsoleSettings:
    api_base_url: str = ""
    timeout_seconds: float = 10.0
    retry_max_attempts: int = 3
    retry_backoff_ms: int = 250
    items_per_page: int = 10
    select_all_scope: str = "visible"
    clear_selection_on_reload: bool = False
    optimistic_ttl_seconds: float = 2.0
    log_level: str = "INFO"
    export_dir: str = "out/exports"


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_settings(env_file: str | None = None) -> ConsoleSettings:
    """Load settings from the environment with optional .env override."""
    load_dotenv(env_file)

    api_base_url = (os.getenv("SHOP_CONSOLE_API_BASE_URL") or "").strip()
    if api_base_url and not api_base_url.endswith("/"):
        api_base_url = f"{api_base_url}/"

    timeout_seconds = _read_float("SHOP_CONSOLE_TIMEOUT_SECONDS", "10")
    _validate(timeout_seconds > 0, f"Invalid SHOP_CONSOLE_TIMEOUT_SECONDS: expected > 0, got {timeout_seconds}")

    retry_max_attempts = _read_int("SHOP_CONSOLE_RETRY_MAX_ATTEMPTS", "3")
    _validate(retry_max_attempts >= 1, f"Invalid SHOP_CONSOLE_RETRY_MAX_ATTEMPTS: expected >= 1, got {retry_max_attempts}")

    retry_backoff_ms = _read_int("SHOP_CONSOLE_RETRY_BACKOFF_MS", "250")
    _validate(retry_backoff_ms >= 0, f"Invalid SHOP_CONSOLE_RETRY_BACKOFF_MS: expected >= 0, got {retry_backoff_ms}")

    items_per_page = _read_int("SHOP_CONSOLE_ITEMS_PER_PAGE", "10")
    _validate(items_per_page > 0, f"Invalid SHOP_CONSOLE_ITEMS_PER_PAGE: expected > 0, got {items_per_page}")

    select_all_scope = (os.getenv("SHOP_CONSOLE_SELECT_ALL_SCOPE") or "visible").strip().lower()
    _validate(
        select_all_scope in SELECT_ALL_SCOPES,
        f"Invalid SHOP_CONSOLE_SELECT_ALL_SCOPE: expected one of {sorted(SELECT_ALL_SCOPES)}, got {select_all_scope!r}",
    )

    optimistic_ttl_seconds = _read_float("SHOP_CONSOLE_OPTIMISTIC_TTL_SECONDS", "2")
    _validate(
        optimistic_ttl_seconds > 0,
        f"Invalid SHOP_CONSOLE_OPTIMISTIC_TTL_SECONDS: expected > 0, got {optimistic_ttl_seconds}",
    )

    log_level = (os.getenv("SHOP_CONSOLE_LOG_LEVEL") or "INFO").strip().upper()
    _validate(log_level in LOG_LEVELS, f"Invalid SHOP_CONSOLE_LOG_LEVEL: {log_level!r}")
    configure_logging(log_level)

    return ConsoleSettings(
        api_base_url=api_base_url,
        timeout_seconds=timeout_seconds,
        retry_max_attempts=retry_max_attempts,
        retry_backoff_ms=retry_backoff_ms,
        items_per_page=items_per_page,
        select_all_scope=select_all_scope,
        clear_selection_on_reload=_coerce_bool(os.getenv("SHOP_CONSOLE_CLEAR_SELECTION_ON_RELOAD"), False),
        optimistic_ttl_seconds=optimistic_ttl_seconds,
        log_level=log_level,
        export_dir=(os.getenv("SHOP_CONSOLE_EXPORT_DIR") or "out/exports").strip(),
    )
