from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Optional, Type, TypeVar

from ..core.constants import MAX_YEAR, MIN_YEAR
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

MONTHS = tuple(f"{m:02d}" for m in range(1, 13))


def require_non_empty(value: Any, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_one_of(value: Optional[str], allowed: Iterable[str], *, label: str = "value") -> str:
    allowed = list(allowed)
    if not value or value not in allowed:
        raise ValidationError(f"Invalid {label}. Must be one of: " + ", ".join(allowed))
    return value


def require_enum(value, enum_cls: Type[E], *, label: str) -> E:
    if isinstance(value, enum_cls):
        return value
    raw = require_one_of(value, [m.value for m in enum_cls], label=label)
    return enum_cls(raw)


def require_month(value: str) -> str:
    return require_one_of(value, MONTHS, label="month")


def require_amount(value, field_name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    return amount


def require_year(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("year must be a number")
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValidationError("year must be a number")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year
