"""
Budget accounting engine.

Ledger owns the buckets, the calculator derives the allowance from them,
RolloverManager closes months and TransactionEditor moves entries between them.
"""

from simplebudget.accounting.ledger import (
    Ledger,
    NotFoundError,
    net_of,
    sum_expenses,
    sum_income,
)
from simplebudget.accounting.calculator import (
    budget_snapshot,
    dynamic_monthly_goal,
    month_summaries,
    monthly_remaining,
    prior_months_net,
    progress_level,
    progress_pct,
    remaining_annual,
    year_to_date_net,
)
from simplebudget.accounting.rollover import (
    DEFAULT_RETENTION_YEARS,
    RolloverManager,
    RolloverState,
    prune_history,
)
from simplebudget.accounting.editor import EditResult, TransactionEditor

__all__ = [
    "DEFAULT_RETENTION_YEARS",
    "EditResult",
    "Ledger",
    "NotFoundError",
    "RolloverManager",
    "RolloverState",
    "TransactionEditor",
    "budget_snapshot",
    "dynamic_monthly_goal",
    "month_summaries",
    "monthly_remaining",
    "net_of",
    "prior_months_net",
    "progress_level",
    "progress_pct",
    "prune_history",
    "remaining_annual",
    "sum_expenses",
    "sum_income",
    "year_to_date_net",
]
