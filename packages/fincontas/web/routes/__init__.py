from . import accounts, categories, credit, expenses, health, planning, pluggy, transactions, users

ROUTERS = (
    health.router,
    users.router,
    accounts.router,
    expenses.router,
    transactions.router,
    categories.router,
    planning.budgets,
    planning.goals,
    credit.router,
    credit.summaries,
    pluggy.router,
)

__all__ = ["ROUTERS"]
