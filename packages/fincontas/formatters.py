"""Value coercion helpers shared by the service modules.

Request bodies arrive as loosely-typed JSON; these helpers turn them into the
numbers, booleans and timestamps stored in the database.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true"}
    return bool(value)


def to_number(value: Any) -> float | None:
    """Parse a numeric JSON value; ``None`` when it is not a finite number."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def resolve_number(value: Any, fallback: float = 0.0) -> float:
    number = to_number(value)
    return fallback if number is None else number


def to_int(value: Any) -> int | None:
    number = to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def parse_date(value: Any) -> datetime | None:
    """Parse a date, ISO timestamp or epoch-milliseconds value as an aware UTC datetime.

    Bare ``YYYY-MM-DD`` dates are midnight UTC.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        # SQLite CURRENT_TIMESTAMP and bare dates are UTC.
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def iso_utc(moment: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    moment = moment.astimezone(UTC)
    # %Y is not zero-padded below year 1000 on glibc.
    return f"{moment.year:04d}-{moment:%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def date_only(moment: datetime) -> str:
    moment = moment.astimezone(UTC)
    return f"{moment.year:04d}-{moment:%m-%d}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def flatten_object(obj: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys, dropping ``None`` values.

    Lists are kept as leaf values.
    """

    result: dict[str, Any] = {}
    for key, value in obj.items():
        new_key = f"{prefix}.{key}" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            result.update(flatten_object(value, new_key))
        else:
            result[new_key] = value
    return result


def payee_name(transaction: Mapping[str, Any]) -> str:
    """Best display name for the counterparty of an aggregator transaction."""

    merchant = transaction.get("merchant")
    if isinstance(merchant, Mapping):
        return merchant.get("name") or merchant.get("businessName") or ""

    payment_data = transaction.get("paymentData")
    if isinstance(payment_data, Mapping):
        for party in ("payer", "payee"):
            info = payment_data.get(party)
            if isinstance(info, Mapping) and info.get("name"):
                return info["name"]

    description = transaction.get("description")
    return description if isinstance(description, str) else ""
