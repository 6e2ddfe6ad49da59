from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, inspect, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# The schema is owned by the SQL migration units in ``fincontas_db.migrations``;
# these models mirror it for querying and must not be used with create_all().
#
# DATETIME columns are mapped as strings: rows carry a mix of ``YYYY-MM-DD``
# dates, ISO-8601 timestamps and SQLite ``CURRENT_TIMESTAMP`` values.

_NOW = text("CURRENT_TIMESTAMP")


def _money(nullable: bool = True, default: str | None = None) -> Any:
    return mapped_column(
        Numeric(18, 2, asdecimal=False),
        nullable=nullable,
        server_default=text(default) if default is not None else None,
    )


def _rate(nullable: bool = True) -> Any:
    return mapped_column(Numeric(10, 4, asdecimal=False), nullable=nullable)


class Base(DeclarativeBase):
    def as_dict(self) -> dict[str, Any]:
        """Column values keyed by column name."""

        mapper = inspect(type(self))
        return {attr.columns[0].name: getattr(self, attr.key) for attr in mapper.column_attrs}


class _Timestamps:
    created_at: Mapped[str | None] = mapped_column(String, server_default=_NOW)
    updated_at: Mapped[str | None] = mapped_column(String, server_default=_NOW)


def _account_fk() -> Any:
    return mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )


# ---------------------------
# Accounts
# ---------------------------


class Account(_Timestamps, Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    pluggy_account_id: Mapped[str | None] = mapped_column(String)
    pluggy_item_id: Mapped[str | None] = mapped_column(String)
    name: Mapped[str] = mapped_column(String, nullable=False)
    account_type: Mapped[str] = mapped_column(String, nullable=False)
    account_subtype: Mapped[str | None] = mapped_column(String)
    institution_name: Mapped[str | None] = mapped_column(String)
    balance: Mapped[float] = _money(nullable=False, default="0")
    currency_code: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'BRL'"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("1"))
    sync_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("1"))
    last_sync_at: Mapped[str | None] = mapped_column(String)

    # Aggregator account metadata
    marketing_name: Mapped[str | None] = mapped_column(String)
    number: Mapped[str | None] = mapped_column(String)
    owner: Mapped[str | None] = mapped_column(String)
    tax_number: Mapped[str | None] = mapped_column(String)
    status: Mapped[str | None] = mapped_column(String)
    category: Mapped[str | None] = mapped_column(String)
    sub_category: Mapped[str | None] = mapped_column(String)
    pluggy_created_at: Mapped[str | None] = mapped_column(String)
    pluggy_updated_at: Mapped[str | None] = mapped_column(String)
    pluggy_last_updated_at: Mapped[str | None] = mapped_column(String)

    # Bank data
    transfer_number: Mapped[str | None] = mapped_column(String)
    closing_balance: Mapped[float | None] = _money()
    automatically_invested_balance: Mapped[float | None] = _money()
    overdraft_contracted_limit: Mapped[float | None] = _money()
    overdraft_used_limit: Mapped[float | None] = _money()
    unarranged_overdraft_amount: Mapped[float | None] = _money()
    branch_code: Mapped[str | None] = mapped_column(String)
    account_digit: Mapped[str | None] = mapped_column(String)
    compe_code: Mapped[str | None] = mapped_column(String)

    # Credit data
    credit_level: Mapped[str | None] = mapped_column(String)
    credit_brand: Mapped[str | None] = mapped_column(String)
    balance_close_date: Mapped[str | None] = mapped_column(String)
    balance_due_date: Mapped[str | None] = mapped_column(String)
    minimum_payment: Mapped[float | None] = _money()
    credit_limit: Mapped[float | None] = _money()
    available_credit_limit: Mapped[float | None] = _money()
    is_limit_flexible: Mapped[bool | None] = mapped_column(Boolean)
    total_installment_balance: Mapped[float | None] = _money()
    interest_rate: Mapped[float | None] = _rate()
    fine_rate: Mapped[float | None] = _rate()
    annual_fee: Mapped[float | None] = _money()
    card_network: Mapped[str | None] = mapped_column(String)
    card_type: Mapped[str | None] = mapped_column(String)

    # Loan data
    contract_number: Mapped[str | None] = mapped_column(String)
    principal_amount: Mapped[float | None] = _money()
    outstanding_balance: Mapped[float | None] = _money()
    loan_interest_rate: Mapped[float | None] = _rate()
    installment_amount: Mapped[float | None] = _money()
    installment_frequency: Mapped[str | None] = mapped_column(String)
    remaining_installments: Mapped[int | None] = mapped_column(Integer)
    total_installments: Mapped[int | None] = mapped_column(Integer)
    due_date: Mapped[str | None] = mapped_column(String)
    maturity_date: Mapped[str | None] = mapped_column(String)
    origination_date: Mapped[str | None] = mapped_column(String)

    # Investment data
    product_name: Mapped[str | None] = mapped_column(String)
    investment_type: Mapped[str | None] = mapped_column(String)
    portfolio_value: Mapped[float | None] = _money()
    net_worth: Mapped[float | None] = _money()
    gross_worth: Mapped[float | None] = _money()
    last_movement_date: Mapped[str | None] = mapped_column(String)
    investment_rate: Mapped[float | None] = _rate()
    rate_type: Mapped[str | None] = mapped_column(String)
    indexer: Mapped[str | None] = mapped_column(String)
    investment_maturity_date: Mapped[str | None] = mapped_column(String)
    isin: Mapped[str | None] = mapped_column(String)
    quantity: Mapped[float | None] = mapped_column(Numeric(18, 6, asdecimal=False))
    unit_price: Mapped[float | None] = mapped_column(Numeric(18, 6, asdecimal=False))


# ---------------------------
# Ledger entries
# ---------------------------


class Transaction(_Timestamps, Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    account_id: Mapped[int | None] = _account_fk()
    pluggy_transaction_id: Mapped[str | None] = mapped_column(String)
    transaction_hash: Mapped[str | None] = mapped_column(String)
    amount: Mapped[float] = _money(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    transaction_type: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'expense'")
    )
    date: Mapped[str] = mapped_column(String, nullable=False)
    balance_after: Mapped[float | None] = _money()
    merchant_name: Mapped[str | None] = mapped_column(String)
    merchant_category: Mapped[str | None] = mapped_column(String)
    payment_method: Mapped[str | None] = mapped_column(String)
    tags: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    reconciled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"))
    status: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'completed'"))
    provider_code: Mapped[str | None] = mapped_column(String)
    operation_type: Mapped[str | None] = mapped_column(String)
    pix_data: Mapped[str | None] = mapped_column(Text)
    installment_data: Mapped[str | None] = mapped_column(Text)
    location_data: Mapped[str | None] = mapped_column(Text)
    foreign_exchange_data: Mapped[str | None] = mapped_column(Text)
    fees_data: Mapped[str | None] = mapped_column(Text)
    processed_at: Mapped[str | None] = mapped_column(String)
    is_synced_from_bank: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("0")
    )


class Expense(_Timestamps, Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    amount: Mapped[float] = _money(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[str] = mapped_column(String, nullable=False)
    pluggy_transaction_id: Mapped[str | None] = mapped_column(String)
    is_synced_from_bank: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("0")
    )

    __table_args__ = (UniqueConstraint("user_id", "pluggy_transaction_id"),)


class TransactionCategory(_Timestamps, Base):
    __tablename__ = "transaction_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str | None] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)
    # JSON-encoded list of keywords
    keywords: Mapped[str | None] = mapped_column(Text)
    parent_id: Mapped[int | None] = mapped_column(Integer)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"))


# ---------------------------
# Planning: budgets and goals
# ---------------------------


class Budget(_Timestamps, Base):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[float] = _money(nullable=False)
    spent: Mapped[float] = _money(nullable=False, default="0")
    period_start: Mapped[str] = mapped_column(String, nullable=False)
    period_end: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'active'"))
    notes: Mapped[str | None] = mapped_column(Text)
    account_id: Mapped[int | None] = _account_fk()


class Goal(_Timestamps, Base):
    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    target_amount: Mapped[float] = _money(nullable=False)
    current_amount: Mapped[float] = _money(nullable=False, default="0")
    target_date: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'savings'"))
    status: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'active'"))
    priority: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'medium'"))
    account_id: Mapped[int | None] = _account_fk()


# ---------------------------
# Credit and holdings
# ---------------------------


class CreditCard(_Timestamps, Base):
    __tablename__ = "credit_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    linked_account_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    credit_limit: Mapped[float] = _money(nullable=False, default="0")
    current_balance: Mapped[float] = _money(nullable=False, default="0")
    due_day: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    closing_day: Mapped[int | None] = mapped_column(Integer)
    issuer: Mapped[str | None] = mapped_column(String)
    brand: Mapped[str | None] = mapped_column(String)
    is_virtual: Mapped[bool | None] = mapped_column(Boolean, server_default=text("0"))
    status: Mapped[str | None] = mapped_column(String)
    last_synced_at: Mapped[str | None] = mapped_column(String)


class Investment(_Timestamps, Base):
    __tablename__ = "investments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    account_id: Mapped[int | None] = _account_fk()
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[float] = _money(nullable=False)
    purchase_date: Mapped[str | None] = mapped_column(String)
    current_value: Mapped[float | None] = _money()
    expected_return_rate: Mapped[float | None] = _rate()
    risk_level: Mapped[str | None] = mapped_column(String)
    institution_name: Mapped[str | None] = mapped_column(String)
    notes: Mapped[str | None] = mapped_column(Text)


class Loan(_Timestamps, Base):
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    account_id: Mapped[int | None] = _account_fk()
    name: Mapped[str] = mapped_column(String, nullable=False)
    principal_amount: Mapped[float] = _money(nullable=False)
    interest_rate: Mapped[float] = _rate(nullable=False)
    start_date: Mapped[str] = mapped_column(String, nullable=False)
    end_date: Mapped[str | None] = mapped_column(String)
    monthly_payment: Mapped[float] = _money(nullable=False)
    remaining_balance: Mapped[float] = _money(nullable=False)
    lender: Mapped[str | None] = mapped_column(String)
    status: Mapped[str | None] = mapped_column(String)
    notes: Mapped[str | None] = mapped_column(Text)


class CreditCardBill(_Timestamps, Base):
    __tablename__ = "credit_card_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    account_id: Mapped[int | None] = _account_fk()
    pluggy_bill_id: Mapped[str | None] = mapped_column(String)
    closing_date: Mapped[str | None] = mapped_column(String)
    due_date: Mapped[str | None] = mapped_column(String)
    total_amount: Mapped[float] = _money(nullable=False, default="0")
    minimum_payment: Mapped[float] = _money(nullable=False, default="0")
    previous_bill_balance: Mapped[float] = _money(nullable=False, default="0")
    paid_amount: Mapped[float] = _money(nullable=False, default="0")
    payment_date: Mapped[str | None] = mapped_column(String)
    is_fully_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("0"))
    interest_rate: Mapped[float | None] = _rate()
    late_fee: Mapped[float] = _money(nullable=False, default="0")
    annual_fee: Mapped[float] = _money(nullable=False, default="0")
    international_fee: Mapped[float] = _money(nullable=False, default="0")
    bill_status: Mapped[str | None] = mapped_column(String)
    currency_code: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'BRL'"))
    bill_month: Mapped[int | None] = mapped_column(Integer)
    bill_year: Mapped[int | None] = mapped_column(Integer)
    pluggy_created_at: Mapped[str | None] = mapped_column(String)
    pluggy_updated_at: Mapped[str | None] = mapped_column(String)


# ---------------------------
# Per-user settings and aggregator links
# ---------------------------


class UserConfig(_Timestamps, Base):
    __tablename__ = "user_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    config_key: Mapped[str] = mapped_column(String, nullable=False)
    config_value: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "config_key"),)


class PluggyConnection(_Timestamps, Base):
    __tablename__ = "pluggy_connections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    pluggy_item_id: Mapped[str] = mapped_column(String, nullable=False)
    institution_name: Mapped[str | None] = mapped_column(String)
    connection_status: Mapped[str | None] = mapped_column(String)
    last_sync_at: Mapped[str | None] = mapped_column(String)
    client_user_id: Mapped[str | None] = mapped_column(String)
    connector_id: Mapped[str | None] = mapped_column(String)
    connector_name: Mapped[str | None] = mapped_column(String)
    connector_image_url: Mapped[str | None] = mapped_column(String)
    connector_primary_color: Mapped[str | None] = mapped_column(String)
    org_id: Mapped[str | None] = mapped_column(String)
    org_name: Mapped[str | None] = mapped_column(String)
    org_domain: Mapped[str | None] = mapped_column(String)
    status_detail: Mapped[str | None] = mapped_column(Text)
    execution_status: Mapped[str | None] = mapped_column(String)
    last_sync_message: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (UniqueConstraint("user_id", "pluggy_item_id"),)


class WebhookConfig(_Timestamps, Base):
    __tablename__ = "webhook_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    webhook_url: Mapped[str] = mapped_column(String, nullable=False)
    # JSON-encoded list of event names
    events: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool | None] = mapped_column(Boolean, server_default=text("1"))


class WebhookLog(Base):
    __tablename__ = "webhook_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    webhook_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text)
    attempt_at: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[str | None] = mapped_column(String, server_default=_NOW)
    user_id: Mapped[str | None] = mapped_column(String)


class SchemaMigration(Base):
    """Read-only view of the migration ledger."""

    __tablename__ = "schema_migrations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    applied_at: Mapped[str] = mapped_column(String, nullable=False)
