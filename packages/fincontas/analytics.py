"""Spending analytics over a user's transactions.

:func:`summarize` is pure and works on plain rows; :func:`transaction_analytics`
loads the rows for a user and an optional account/date window.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fincontas_db.models import Transaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .categorize import DEFAULT_CATEGORY
from .formatters import parse_date, resolve_number
from .transactions import TransactionFilters

MAX_MONTHS = 12
MAX_MERCHANTS = 10


@dataclass(slots=True)
class _Bucket:
    total: float = 0.0
    count: int = 0

    def add(self, amount: float) -> None:
        self.total += amount
        self.count += 1


def summarize(rows: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Aggregate rows with ``amount``, ``category``, ``merchant_name`` and ``date``.

    Rows whose date cannot be parsed are left out entirely.
    """

    total_amount = 0.0
    total_count = 0
    categories: dict[str, _Bucket] = {}
    months: dict[str, _Bucket] = {}
    merchants: dict[str, _Bucket] = {}

    for row in rows:
        moment = parse_date(row.get("date"))
        if moment is None:
            continue
        amount = resolve_number(row.get("amount"))
        total_amount += amount
        total_count += 1

        categories.setdefault(row.get("category") or DEFAULT_CATEGORY, _Bucket()).add(amount)
        months.setdefault(moment.strftime("%Y-%m"), _Bucket()).add(amount)
        merchant = row.get("merchant_name")
        if merchant:
            merchants.setdefault(merchant, _Bucket()).add(amount)

    category_breakdown = [
        {
            "category": name,
            "totalAmount": b.total,
            "transactionCount": b.count,
            "percentage": (b.total * 100 / total_amount) if total_amount > 0 else 0,
        }
        for name, b in categories.items()
    ]
    monthly_trends = [
        {"month": month, "totalAmount": b.total, "transactionCount": b.count}
        for month, b in sorted(months.items(), reverse=True)[:MAX_MONTHS]
    ]
    top_merchants = [
        {"merchant_name": name, "totalAmount": b.total, "transactionCount": b.count}
        for name, b in sorted(merchants.items(), key=lambda kv: kv[1].total, reverse=True)[
            :MAX_MERCHANTS
        ]
    ]

    return {
        "totalTransactions": total_count,
        "totalAmount": total_amount,
        "averageAmount": total_amount / total_count if total_count else 0,
        "categoryBreakdown": category_breakdown,
        "monthlyTrends": monthly_trends,
        "topMerchants": top_merchants,
    }


def transaction_analytics(
    session: Session, user_id: str, query: Mapping[str, str]
) -> dict[str, Any]:
    full = TransactionFilters.from_query(query)
    filters = TransactionFilters(
        account_id=full.account_id, date_from=full.date_from, date_to=full.date_to
    )
    stmt = select(
        Transaction.amount, Transaction.category, Transaction.merchant_name, Transaction.date
    ).where(*filters.clauses(user_id))
    return summarize(row._asdict() for row in session.execute(stmt))
