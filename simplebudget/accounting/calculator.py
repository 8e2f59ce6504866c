"""
Budget Calculator

Pure functions over a LedgerState and a date. Nothing here mutates state
and nothing is cached: every figure is recomputed from the buckets on each
call, so an edit to an archived transaction changes year-to-date figures
immediately.

THE ALLOWANCE:
    goal = (annual budget - year-to-date net) / months remaining in year

The allowance is dynamic. Overspending in one month spreads the shortfall
over the months that remain; underspending loosens them. Within a month only
the year-to-date term moves, because months remaining is fixed for the month.

Archived buckets carry the goal that was in effect when they were closed.
That frozen figure is displayed as-is and is never recomputed here.
"""

from datetime import date
from decimal import Decimal

from simplebudget.money import (
    ZERO,
    format_month_label,
    months_remaining_in_year,
    round_currency,
    year_of,
)
from simplebudget.models.ledger import (
    BudgetSnapshot,
    LedgerState,
    MonthSummary,
    ProgressLevel,
)
from simplebudget.accounting.ledger import net_of, sum_expenses, sum_income


DEFAULT_WARNING_PCT = 70.0
DEFAULT_DANGER_PCT = 90.0


def prior_months_net(state: LedgerState, now: date) -> Decimal:
    """Net of the archived months in `now`'s year, excluding the current month."""
    return sum(
        (
            net_of(bucket.transactions)
            for key, bucket in state.history.items()
            if year_of(key) == now.year
        ),
        ZERO,
    )


def year_to_date_net(state: LedgerState, now: date) -> Decimal:
    """Archived months of this year plus the live current month."""
    return prior_months_net(state, now) + net_of(state.transactions)


def remaining_annual(state: LedgerState, now: date) -> Decimal:
    return state.settings.annual_budget - year_to_date_net(state, now)


def dynamic_monthly_goal(state: LedgerState, now: date) -> Decimal:
    """
    Allowance in effect for the month of `now`, at full precision.

    Round only for display or when freezing it into an archived bucket.
    """
    months = months_remaining_in_year(now)
    if months <= 0:
        return ZERO
    return remaining_annual(state, now) / months


def monthly_remaining(state: LedgerState, now: date) -> Decimal:
    """The headline figure. Negative means over budget."""
    return dynamic_monthly_goal(state, now) - net_of(state.transactions)


def progress_pct(net: Decimal, goal: Decimal) -> float:
    """Share of the goal used, clamped to 0..100. Zero when there is no goal."""
    if goal <= 0:
        return 0.0
    pct = max(ZERO, net) / goal * 100
    return float(min(max(pct, ZERO), Decimal(100)))


def progress_level(
    pct: float,
    warning_pct: float = DEFAULT_WARNING_PCT,
    danger_pct: float = DEFAULT_DANGER_PCT,
) -> ProgressLevel:
    if pct >= danger_pct:
        return ProgressLevel.DANGER
    if pct >= warning_pct:
        return ProgressLevel.WARNING
    return ProgressLevel.OK


def budget_snapshot(
    state: LedgerState,
    now: date,
    warning_pct: float = DEFAULT_WARNING_PCT,
    danger_pct: float = DEFAULT_DANGER_PCT,
) -> BudgetSnapshot:
    """All headline figures for the current month, rounded for display."""
    current = state.transactions
    goal = dynamic_monthly_goal(state, now)
    net = net_of(current)
    pct = progress_pct(net, goal)

    return BudgetSnapshot(
        month=state.current_month,
        goal=round_currency(goal),
        spent=sum_expenses(current),
        income=sum_income(current),
        net=net,
        remaining=round_currency(goal - net),
        progress_pct=pct,
        progress_level=progress_level(pct, warning_pct, danger_pct),
        months_remaining=months_remaining_in_year(now),
        year_to_date_net=year_to_date_net(state, now),
        remaining_annual=remaining_annual(state, now),
        transaction_count=len(current),
    )


def month_summaries(state: LedgerState) -> list[MonthSummary]:
    """History cards, newest month first."""
    summaries = []
    for key in sorted(state.history, reverse=True):
        bucket = state.history[key]
        txs = bucket.transactions
        summaries.append(MonthSummary(
            month=key,
            label=format_month_label(key),
            goal=bucket.goal,
            spent=sum_expenses(txs),
            income=sum_income(txs),
            net=net_of(txs),
            transaction_count=len(txs),
        ))
    return summaries
