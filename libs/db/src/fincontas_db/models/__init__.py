"""ORM models for the FinContas schema."""

from .finance import (
    Account,
    Base,
    Budget,
    CreditCard,
    CreditCardBill,
    Expense,
    Goal,
    Investment,
    Loan,
    PluggyConnection,
    SchemaMigration,
    Transaction,
    TransactionCategory,
    UserConfig,
    WebhookConfig,
    WebhookLog,
)

__all__ = [
    "Account",
    "Base",
    "Budget",
    "CreditCard",
    "CreditCardBill",
    "Expense",
    "Goal",
    "Investment",
    "Loan",
    "PluggyConnection",
    "SchemaMigration",
    "Transaction",
    "TransactionCategory",
    "UserConfig",
    "WebhookConfig",
    "WebhookLog",
]
