"""
Common validation and parsing utilities for clinic input.

Every helper either returns a cleaned value or raises ValidationError naming
the offending field, so domain constructors and services can validate in a
straight line without accumulating error state.
"""

import logging
import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Union

from clinic.core import config
from clinic.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

Number = Union[int, float]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def require_text(value: Any, field_name: str) -> str:
    """Return the stripped string, rejecting None and blank values."""
    if is_blank(value):
        raise ValidationError("is required", field_name)
    return str(value).strip()


def require_choice(value: Any, allowed: Iterable[str], field_name: str) -> str:
    """Return ``value`` if it is one of ``allowed``."""
    allowed = tuple(allowed)
    text = require_text(value, field_name)
    if text not in allowed:
        raise ValidationError(f"must be one of: {', '.join(allowed)}", field_name)
    return text


def require_known(value: str, vocabulary: Iterable[str], field_name: str) -> str:
    """Check a value against a configured controlled vocabulary."""
    if value not in set(vocabulary):
        raise ValidationError(f"'{value}' is not a configured value", field_name)
    return value


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive wall-clock time in APP_TZ."""
    if value.tzinfo is None:
        return value
    return value.astimezone(config.APP_TZ).replace(tzinfo=None)


def iso_date(raw: str) -> date:
    """Date of an ISO ``YYYY-MM-DD`` or full ISO-8601 date-time string.

    Raises ValueError for anything else, trailing text included.
    """
    raw = raw.strip()
    if "T" in raw:
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return to_local_naive(datetime.fromisoformat(raw)).date()
    if len(raw) != 10:
        raise ValueError(f"not an ISO date: {raw!r}")
    return date.fromisoformat(raw)


def parse_date(value: Any, field_name: str) -> date:
    """Accept a date or an ISO date (or date-time) string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return iso_date(value)
        except ValueError:
            pass
    raise ValidationError("invalid date, use YYYY-MM-DD", field_name)


def parse_datetime(value: Any, field_name: str) -> datetime:
    """Accept a datetime or an ISO-8601 string (``Z`` suffix allowed).

    Results are naive local wall-clock times.
    """
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(raw))
        except ValueError:
            pass
    raise ValidationError("invalid date-time, use ISO-8601", field_name)


def parse_dosage(value: Any, field_name: str = "dosage") -> Number:
    """Validate a non-negative dosage in UI units.

    Integers stay integers; anything else becomes a float.
    """
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError("must be a number", field_name)
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = Decimal(str(value).strip().replace(",", "."))
        except (InvalidOperation, ValueError):
            raise ValidationError("must be a number", field_name)
        if not number.is_finite():
            raise ValidationError("must be a number", field_name)
        number = int(number) if number == number.to_integral_value() else float(number)

    if not math.isfinite(number):
        raise ValidationError("must be a number", field_name)
    if number < 0:
        raise ValidationError("cannot be negative", field_name)
    return number


def clean_labels(values: Any, field_name: str) -> list:
    """Normalize a list of vocabulary labels: strip, drop blanks, keep order."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        raise ValidationError("must be a list", field_name)
    cleaned = []
    for value in values:
        if is_blank(value):
            continue
        text = str(value).strip()
        if text not in cleaned:
            cleaned.append(text)
    return cleaned
