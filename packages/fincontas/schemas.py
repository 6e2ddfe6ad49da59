"""Validated request bodies.

Routes whose bodies are partial updates with field-specific error messages
take a plain JSON object and validate inside the service module instead.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import BadRequest
from .formatters import iso_utc, parse_date

_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ExpenseIn(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    amount: float = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    category: str = Field(min_length=1, max_length=100)
    date: str = Field(pattern=_DATE_PATTERN)


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    amount: float
    description: str = Field(min_length=1, max_length=500)
    category: str = Field(min_length=1, max_length=100)
    date: str
    transaction_type: Literal["income", "expense", "transfer"] = "expense"
    account_id: int | None = None
    merchant_name: str | None = None
    payment_method: str | None = None
    notes: str | None = None
    reconciled: bool = False

    @field_validator("date")
    @classmethod
    def _date_parses(cls, v: str) -> str:
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError("date must be an ISO-8601 date or timestamp")
        return iso_utc(parsed)


class PluggyTransactionsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    accountId: str = Field(min_length=1)
    startDate: str | None = None


def required_text(value: Any, message: str) -> str:
    """Return ``value`` stripped; anything but a non-blank string is a :class:`BadRequest`."""

    if not isinstance(value, str) or not value.strip():
        raise BadRequest(message)
    return value.strip()


def optional_text(value: Any, message: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise BadRequest(message)
