from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union
from urllib.parse import urlparse


Predicate = Callable[[Any], bool]

# Human formats accepted in addition to ISO-8601
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def is_missing(value: Any) -> bool:
    return value is None or value == ""


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return False
        try:
            return math.isfinite(float(text))
        except ValueError:
            return False
    return False


def parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def is_valid_date(value: Any) -> bool:
    return parse_date(value) is not None


def is_valid_boolean(value: Any) -> bool:
    return isinstance(value, bool) or value in ("true", "false")


def one_of(choices: Union[Type[Enum], Iterable[str]]) -> Predicate:
    """Predicate accepting only members of a closed set (enum values or strings)."""
    if isinstance(choices, type) and issubclass(choices, Enum):
        allowed = {str(member.value) for member in choices}
    else:
        allowed = {str(c) for c in choices}

    def _check(value: Any) -> bool:
        if isinstance(value, Enum):
            value = value.value
        return isinstance(value, str) and value in allowed

    return _check


def validate_row(
    row: Mapping[str, Any],
    required_fields: Sequence[str],
    validations: Optional[Mapping[str, Predicate]] = None,
) -> Tuple[bool, List[str]]:
    """Check required fields and per-field predicates.

    Returns ``(is_valid, errors)``. Predicates only run on present values, so
    an unset optional field is always valid and an unset required field is
    reported once, as missing.
    """
    errors: List[str] = []

    for field in required_fields:
        if is_missing(row.get(field)):
            errors.append(f"Missing required field: {field}")

    for field, predicate in (validations or {}).items():
        value = row.get(field)
        if is_missing(value):
            continue
        if not predicate(value):
            errors.append(f"Invalid value for field: {field}")

    return len(errors) == 0, errors


def filter_missing(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def apply_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill fields absent from ``data`` from ``defaults``; present values always win."""
    return {**defaults, **filter_missing(data)}


def get_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_id() -> str:
    return str(uuid.uuid4())


def to_number(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
        if not math.isfinite(num):
            return None
        if num.is_integer():
            return int(num)
        return num
    return None


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


__all__ = [
    "Predicate",
    "is_missing",
    "is_valid_url",
    "is_valid_number",
    "is_valid_date",
    "is_valid_boolean",
    "parse_date",
    "one_of",
    "validate_row",
    "filter_missing",
    "apply_defaults",
    "get_now",
    "generate_id",
    "to_number",
    "to_boolean",
]
