from __future__ import annotations

import math
from datetime import UTC, datetime

import pytest
from fincontas.formatters import (
    date_only,
    flatten_object,
    iso_utc,
    parse_date,
    payee_name,
    resolve_number,
    to_boolean,
    to_int,
    to_number,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, True),
        (0, False),
        (2.5, True),
        ("true", True),
        (" TRUE ", True),
        ("1", True),
        ("yes", False),
        ("", False),
        (None, False),
    ],
)
def test_to_boolean(value, expected) -> None:
    assert to_boolean(value) is expected


def test_to_number() -> None:
    assert to_number(" 12.5 ") == 12.5
    assert to_number(3) == 3.0
    assert to_number("") is None
    assert to_number("1,5") is None
    assert to_number(True) is None
    assert to_number(math.inf) is None
    assert to_number("nan") is None
    assert to_number([1]) is None
    assert resolve_number("x", fallback=7) == 7


def test_to_int() -> None:
    assert to_int("42") == 42
    assert to_int(3.0) == 3
    assert to_int(3.5) is None
    assert to_int(None) is None


def test_parse_date_variants() -> None:
    assert parse_date("2024-03-10") == datetime(2024, 3, 10, tzinfo=UTC)
    assert parse_date("2024-03-10T12:00:00Z") == datetime(2024, 3, 10, 12, tzinfo=UTC)
    assert parse_date("2024-03-10T09:00:00-03:00") == datetime(2024, 3, 10, 12, tzinfo=UTC)
    assert parse_date("2024-03-10 12:00:00") == datetime(2024, 3, 10, 12, tzinfo=UTC)
    assert parse_date(0) == datetime(1970, 1, 1, tzinfo=UTC)
    assert parse_date("soon") is None
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date(True) is None


def test_iso_utc_and_date_only() -> None:
    moment = datetime(2024, 3, 10, 12, 5, 7, 123456, tzinfo=UTC)
    assert iso_utc(moment) == "2024-03-10T12:05:07.123Z"
    assert date_only(moment) == "2024-03-10"


def test_flatten_object_drops_none_and_keeps_lists() -> None:
    nested = {"a": 1, "b": {"c": None, "d": {"e": "x"}}, "f": [1, 2], "g": None}
    assert flatten_object(nested) == {"a": 1, "b.d.e": "x", "f": [1, 2]}


def test_payee_name_precedence() -> None:
    assert payee_name({"merchant": {"businessName": "ACME LTDA"}}) == "ACME LTDA"
    assert payee_name({"paymentData": {"payer": {"name": "Ana"}, "payee": {"name": "Bia"}}}) == "Ana"
    assert payee_name({"paymentData": {"payee": {"name": "Bia"}}}) == "Bia"
    assert payee_name({"description": "PIX"}) == "PIX"
    assert payee_name({}) == ""


def test_early_years_are_zero_padded() -> None:
    moment = parse_date("0999-01-02")
    assert moment is not None
    assert iso_utc(moment) == "0999-01-02T00:00:00.000Z"
    assert date_only(moment) == "0999-01-02"
