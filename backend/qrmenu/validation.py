from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable


# Largest value that fits DECIMAL(10,2)
MAX_AMOUNT = Decimal("99999999.99")
# Largest value that fits DECIMAL(5,2)
MAX_RATE = Decimal("999.99")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, code: str = "INVALID_INPUT"):
        super().__init__(message)
        self.code = code
        self.message = message


class ConflictError(ValueError):
    """400-level business rule conflict (e.g., duplicate name)."""

    def __init__(self, message: str, code: str = "DUPLICATE_NAME"):
        super().__init__(message)
        self.code = code
        self.message = message


class NotFoundError(LookupError):
    """404-level missing or foreign-owned resource."""

    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message)
        self.code = code
        self.message = message


def clean_name(value: Any, *, label: str = "Name", max_length: int = 255, code: str = "INVALID_NAME") -> str:
    """
    Trim and validate a display name.

    Rejects non-strings, blank strings and strings longer than max_length
    (checked after trimming).
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} must be a non-empty string", code=code)
    name = value.strip()
    if len(name) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters", code=code)
    return name


def coerce_decimal(
    value: Any,
    *,
    label: str,
    code: str = "INVALID_INPUT",
    maximum: Decimal = MAX_AMOUNT,
    allow_negative: bool = False,
) -> Decimal:
    """
    Convert a JSON number (or numeric string) to a 2-place Decimal.

    Booleans are rejected even though bool is an int subclass.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{label} must be a number", code=code)
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number", code=code)
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a number", code=code)
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{label} must be >= 0", code=code)
    if amount > maximum:
        raise ValidationError(f"{label} cannot exceed {maximum}", code=code)
    return amount.quantize(Decimal("0.01"))


def require_choice(
    value: Any,
    choices: Iterable[str],
    *,
    label: str,
    default: str | None = None,
    code: str = "INVALID_INPUT",
) -> str:
    choices = tuple(choices)
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{label} is required", code=code)
        return default
    if value not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}", code=code)
    return value


def require_status_flag(value: Any, *, code: str = "INVALID_STATUS") -> int:
    """Status columns are 0 (hidden) or 1 (active)."""
    if isinstance(value, bool) or value not in (0, 1):
        raise ValidationError("Status must be 0 or 1", code=code)
    return int(value)


def coerce_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    return bool(value)
