from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Literal

from shop_console.errors import TableContractError
from shop_console.table.columns import Row, resolve_field

DateBound = Literal["on", "from", "to"]
RANGE_MIN_SUFFIX = "_min"
RANGE_MAX_SUFFIX = "_max"


class FilterType(str, Enum):
    SELECT = "select"
    TEXT = "text"
    DATE = "date"
    RANGE = "range"


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str


@dataclass(frozen=True)
class FilterDef:
    name: str
    label: str
    type: FilterType = FilterType.TEXT
    field: str | None = None
    options: tuple[FilterOption, ...] = ()
    date_bound: DateBound = "on"

    @property
    def target(self) -> str:
        return self.field or self.name

    def keys(self) -> tuple[str, ...]:
        if self.type is FilterType.RANGE:
            return (f"{self.name}{RANGE_MIN_SUFFIX}", f"{self.name}{RANGE_MAX_SUFFIX}")
        return (self.name,)


@dataclass
class FilterResult:
    values: dict[str, Any]
    field_errors: dict[str, str]

    @property
    def first_invalid_field(self) -> str | None:
        return next(iter(self.field_errors), None)

    @property
    def is_valid(self) -> bool:
        return len(self.field_errors) == 0


def clean_predicates(predicates: Mapping[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in predicates.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        cleaned[key] = value
    return cleaned


def to_number(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return None if number.is_nan() else number


def to_day(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                return None
    return None


def _exact_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _predicate_for(definition: FilterDef, predicates: Mapping[str, Any]) -> Callable[[Row], bool] | None:
    target = definition.target
    if definition.type is FilterType.RANGE:
        low_key, high_key = definition.keys()
        low = to_number(predicates.get(low_key))
        high = to_number(predicates.get(high_key))
        if low is None and high is None:
            return None

        def in_range(row: Row) -> bool:
            value = to_number(resolve_field(row, target))
            if value is None:
                return False
            if low is not None and value < low:
                return False
            if high is not None and value > high:
                return False
            return True

        return in_range

    if definition.name not in predicates:
        return None
    expected = predicates[definition.name]

    if definition.type is FilterType.DATE:
        day = to_day(expected)
        if day is None:
            return None
        bound = definition.date_bound

        def on_day(row: Row) -> bool:
            value = to_day(resolve_field(row, target))
            if value is None:
                return False
            if bound == "from":
                return value >= day
            if bound == "to":
                return value <= day
            return value == day

        return on_day

    expected_text = _exact_text(expected)

    def equals(row: Row) -> bool:
        return _exact_text(resolve_field(row, target)) == expected_text

    return equals


def build_predicate(filters: Sequence[FilterDef], predicates: Mapping[str, Any]) -> Callable[[Row], bool]:
    cleaned = clean_predicates(predicates)
    checks = [check for check in (_predicate_for(item, cleaned) for item in filters) if check is not None]

    def matches(row: Row) -> bool:
        return all(check(row) for check in checks)

    return matches


def apply_predicates(rows: Iterable[Row], filters: Sequence[FilterDef], predicates: Mapping[str, Any]) -> list[Row]:
    if not filters or not clean_predicates(predicates):
        return list(rows)
    matches = build_predicate(filters, predicates)
    return [row for row in rows if matches(row)]


def validate_predicates(filters: Sequence[FilterDef], predicates: Mapping[str, Any]) -> FilterResult:
    cleaned = clean_predicates(predicates)
    field_errors: dict[str, str] = {}
    for definition in filters:
        if definition.type is FilterType.RANGE:
            low_key, high_key = definition.keys()
            for key in (low_key, high_key):
                if key in cleaned and to_number(cleaned[key]) is None:
                    field_errors[key] = f"{definition.label} must be a number."
            low = to_number(cleaned.get(low_key))
            high = to_number(cleaned.get(high_key))
            if low is not None and high is not None and low > high:
                field_errors[high_key] = f"{definition.label}: maximum is lower than minimum."
        elif definition.name in cleaned:
            value = cleaned[definition.name]
            if definition.type is FilterType.DATE and to_day(value) is None:
                field_errors[definition.name] = f"{definition.label} must be a date (YYYY-MM-DD)."
            elif definition.type is FilterType.SELECT and definition.options:
                allowed = {option.value for option in definition.options}
                if _exact_text(value) not in allowed:
                    field_errors[definition.name] = f"{definition.label}: unknown option {value!r}."
    return FilterResult(values=cleaned, field_errors=field_errors)


@dataclass
class FilterPanel:
    """Draft/applied predicate set behind the filter side panel."""

    filters: tuple[FilterDef, ...]
    on_apply: Callable[[dict[str, Any]], None] | None = None
    on_reset: Callable[[dict[str, Any]], None] | None = None
    draft: dict[str, Any] = field(default_factory=dict)
    applied: dict[str, Any] = field(default_factory=dict)
    is_open: bool = False

    def __post_init__(self) -> None:
        self.filters = tuple(self.filters)
        names: set[str] = set()
        for definition in self.filters:
            for key in definition.keys():
                if key in names:
                    raise TableContractError(
                        code="DUPLICATE_FILTER_KEY",
                        message=f"Duplicate filter key: {key}",
                        details={"key": key},
                    )
                names.add(key)
        self._known_keys = names

    def toggle(self) -> bool:
        self.is_open = not self.is_open
        return self.is_open

    def set_value(self, name: str, value: Any) -> None:
        if name not in self._known_keys:
            raise TableContractError(code="UNKNOWN_FILTER", message=f"Unknown filter: {name}", details={"key": name})
        self.draft[name] = value

    def validate(self) -> FilterResult:
        return validate_predicates(self.filters, self.draft)

    def apply(self) -> FilterResult:
        result = self.validate()
        if not result.is_valid:
            return result
        self.applied = dict(result.values)
        if self.on_apply is not None:
            self.on_apply(dict(self.applied))
        return result

    def reset(self) -> None:
        self.draft = {}
        self.applied = {}
        if self.on_reset is not None:
            self.on_reset({})

    def predicate(self) -> Callable[[Row], bool]:
        return build_predicate(self.filters, self.applied)
