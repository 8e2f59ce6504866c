"""
Month Rollover

Two states: CURRENT (state.current_month == month_key(now)) and STALE.
check() moves STALE -> CURRENT:

1. Freeze the outgoing month's allowance, computed as if "now" were still
   inside that month (its own transactions count as current).
2. Archive the month under its key. An existing bucket is overwritten.
3. Open the new month with an empty list.
4. Prune history older than the retention window.

A gap of several months produces a single rollover. Months in the gap were
never current, had no transactions, and get no bucket.
"""

from datetime import date
from typing import Optional

import structlog

from simplebudget.money import month_key, month_start, round_currency, year_of
from simplebudget.models.ledger import LedgerState, MonthBucket, RolloverResult
from simplebudget.accounting.calculator import dynamic_monthly_goal
from simplebudget.accounting.ledger import Ledger


# Keep last calendar year and this one
DEFAULT_RETENTION_YEARS = 1


class RolloverState:
    CURRENT = "current"
    STALE = "stale"


def prune_history(
    state: LedgerState,
    now: date,
    retention_years: int = DEFAULT_RETENTION_YEARS,
) -> list[str]:
    """
    Drop history buckets whose year is before now.year - retention_years.

    Returns:
        The removed month keys, oldest first
    """
    cutoff = now.year - retention_years
    expired = sorted(key for key in state.history if year_of(key) < cutoff)
    for key in expired:
        del state.history[key]
    return expired


class RolloverManager:
    """Runs the month-boundary check once per session, before any read."""

    def __init__(self, retention_years: int = DEFAULT_RETENTION_YEARS):
        if retention_years < 0:
            raise ValueError("retention_years cannot be negative")
        self._retention_years = retention_years
        self._logger = structlog.get_logger(__name__)

    @staticmethod
    def status(state: LedgerState, now: date) -> str:
        if state.current_month == month_key(now):
            return RolloverState.CURRENT
        return RolloverState.STALE

    def check(self, ledger: Ledger, now: date) -> Optional[RolloverResult]:
        """
        Roll the ledger over if its current month is not now's month.

        Returns:
            What was archived, or None if the ledger was already current
        """
        state = ledger.state
        if self.status(state, now) == RolloverState.CURRENT:
            return None

        outgoing = state.current_month
        goal = round_currency(dynamic_monthly_goal(state, month_start(outgoing)))
        archived_count = len(state.transactions)

        state.history[outgoing] = MonthBucket(goal=goal, transactions=state.transactions)
        state.current_month = month_key(now)
        state.transactions = []

        # A bucket relocated into the new month ahead of time would now collide
        # with the live list; fold it back in.
        early = state.history.pop(state.current_month, None)
        if early is not None:
            state.transactions = sorted(early.transactions, key=lambda tx: tx.date, reverse=True)

        pruned = prune_history(state, now, self._retention_years)
        new_allowance = round_currency(dynamic_monthly_goal(state, now))

        self._logger.info(
            "month_rolled_over",
            archived_month=outgoing,
            new_month=state.current_month,
            archived_goal=str(goal),
            new_allowance=str(new_allowance),
            pruned_months=pruned,
        )

        return RolloverResult(
            archived_month=outgoing,
            new_month=state.current_month,
            archived_goal=goal,
            new_allowance=new_allowance,
            archived_count=archived_count,
            pruned_months=pruned,
        )

    def prune(self, state: LedgerState, now: date) -> list[str]:
        return prune_history(state, now, self._retention_years)
