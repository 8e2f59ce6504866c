"""Shared fixtures: a controllable clock and small ledger builders."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from simplebudget.accounting import Ledger
from simplebudget.audit import AuditLogger
from simplebudget.models.ledger import LedgerSettings, LedgerState, MonthBucket, Transaction
from simplebudget.orchestrator import BudgetTracker
from simplebudget.services.storage import InMemoryAuditStorage, InMemoryStore


class FixedClock:
    """Callable clock whose time the test moves by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 1, 9, 30))


@pytest.fixture
def make_tx():
    """Factory for transactions with explicit ids and dates."""
    def _make(
        amount: str,
        day: date,
        tx_id: str,
        description: str = "Test",
        time: Optional[str] = None,
    ) -> Transaction:
        return Transaction(
            id=tx_id,
            date=day,
            time=time,
            amount=Decimal(amount),
            description=description,
        )
    return _make


@pytest.fixture
def make_state():
    """Factory for a LedgerState with an annual budget and optional buckets."""
    def _make(
        current_month: str,
        annual_budget: str = "12000",
        transactions: Optional[list[Transaction]] = None,
        history: Optional[dict[str, tuple[str, list[Transaction]]]] = None,
    ) -> LedgerState:
        return LedgerState(
            current_month=current_month,
            settings=LedgerSettings(annual_budget=Decimal(annual_budget)),
            transactions=transactions or [],
            history={
                key: MonthBucket(goal=Decimal(goal), transactions=txs)
                for key, (goal, txs) in (history or {}).items()
            },
        )
    return _make


@pytest.fixture
def march_ledger(make_state) -> Ledger:
    """Empty March 2024 ledger with a 12,000 annual budget."""
    return Ledger(make_state("2024-03"))


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def tracker(store, audit_storage, clock) -> BudgetTracker:
    return BudgetTracker(
        store=store,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
    )
