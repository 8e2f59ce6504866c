"""
Ledger

Owns the current month's transaction list and the history map of a
LedgerState, and exposes the CRUD and query operations on them.

Ordering rule: the current-month list is newest-insert-first. Adding never
sorts; two entries on the same day keep reverse insertion order.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from simplebudget.money import ZERO, month_key
from simplebudget.models.ledger import (
    CURRENT_BUCKET,
    LedgerState,
    MonthBucket,
    Transaction,
    TransactionKind,
)
from simplebudget.validation.validator import TransactionValidator, ValidationError


class NotFoundError(LookupError):
    """A transaction or bucket that an operation requires does not exist."""
    pass


def sum_expenses(transactions: Iterable[Transaction]) -> Decimal:
    """Total magnitude of the negative (expense) amounts."""
    return sum((-tx.amount for tx in transactions if tx.amount < 0), ZERO)


def sum_income(transactions: Iterable[Transaction]) -> Decimal:
    """Total of the positive (income) amounts."""
    return sum((tx.amount for tx in transactions if tx.amount > 0), ZERO)


def net_of(transactions: Iterable[Transaction]) -> Decimal:
    """Net spend: expenses minus income. Negative when income dominates."""
    txs = list(transactions)
    return sum_expenses(txs) - sum_income(txs)


class Ledger:
    """
    Mutable view over one LedgerState.

    A bucket is addressed either by CURRENT_BUCKET ("current") or by a
    history month key.
    """

    def __init__(self, state: LedgerState):
        self.state = state

    @classmethod
    def fresh(cls, today: date) -> "Ledger":
        return cls(LedgerState.fresh(today))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def current_month(self) -> str:
        return self.state.current_month

    @property
    def transactions(self) -> list[Transaction]:
        return self.state.transactions

    def resolve_bucket(self, bucket: str) -> str:
        """Map the current month's own key onto CURRENT_BUCKET."""
        if bucket == self.state.current_month:
            return CURRENT_BUCKET
        return bucket

    def bucket_transactions(self, bucket: str) -> Optional[list[Transaction]]:
        """The live list behind a bucket, or None if that history month has no bucket."""
        bucket = self.resolve_bucket(bucket)
        if bucket == CURRENT_BUCKET:
            return self.state.transactions
        archived = self.state.history.get(bucket)
        return archived.transactions if archived is not None else None

    def get_transaction(self, tx_id: str, bucket: str = CURRENT_BUCKET) -> Transaction:
        """
        Look up a transaction in a specific bucket.

        Raises:
            NotFoundError: If the bucket or the id is absent
        """
        txs = self.bucket_transactions(bucket)
        if txs is not None:
            for tx in txs:
                if tx.id == tx_id:
                    return tx
        raise NotFoundError(f"Transaction {tx_id} not found in {bucket}")

    def find(self, tx_id: str) -> Optional[tuple[str, Transaction]]:
        """Search every bucket; returns (bucket, transaction) or None."""
        for bucket, tx in self.state.iter_transactions():
            if tx.id == tx_id:
                return bucket, tx
        return None

    def history_keys(self) -> list[str]:
        """Archived month keys, newest first."""
        return sorted(self.state.history, reverse=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        amount: Any,
        description: Optional[str],
        kind: Any = TransactionKind.EXPENSE,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a new entry at the head of the current month.

        Args:
            amount: Positive magnitude; the sign comes from `kind`
            description: Free text; blank falls back to "Income"/"Expense"
            kind: expense or income
            now: Timestamp of the entry (defaults to the wall clock)

        Raises:
            ValidationError: If the amount is not a positive finite number,
                or `now` is not in the current month
        """
        kind = TransactionValidator.validate_kind(kind)
        magnitude = TransactionValidator.validate_amount(amount)
        now = now or datetime.now()

        if month_key(now.date()) != self.state.current_month:
            raise ValidationError.single(
                "date",
                "wrong_month",
                f"{now.date().isoformat()} is not in the current month "
                f"{self.state.current_month}; run the rollover check first",
            )

        tx = Transaction(
            date=now.date(),
            time=now.strftime("%H:%M"),
            amount=magnitude if kind is TransactionKind.INCOME else -magnitude,
            description=TransactionValidator.normalize_description(description, kind),
        )
        self.state.transactions.insert(0, tx)
        return tx

    def delete_transaction(self, tx_id: str, bucket: str = CURRENT_BUCKET) -> bool:
        """
        Remove by id from the given bucket.

        Idempotent: a missing id or missing bucket is a no-op.

        Returns:
            True if a transaction was removed
        """
        txs = self.bucket_transactions(bucket)
        if txs is None:
            return False
        for index, tx in enumerate(txs):
            if tx.id == tx_id:
                del txs[index]
                return True
        return False

    def ensure_history_bucket(self, key: str) -> MonthBucket:
        """
        Get or create a history bucket.

        A created bucket starts with goal 0; no allowance is backfilled.
        """
        bucket = self.state.history.get(key)
        if bucket is None:
            bucket = MonthBucket(goal=ZERO)
            self.state.history[key] = bucket
        return bucket

    def update_settings(self, annual_budget: Any) -> Decimal:
        """
        Save a new annual budget.

        Archived goals are not touched.

        Raises:
            ValidationError: If the budget is negative or not numeric
        """
        amount = TransactionValidator.validate_annual_budget(annual_budget)
        self.state.settings.annual_budget = amount
        return amount

    def clear(self, today: date) -> None:
        """Drop all transactions, history and settings."""
        self.state = LedgerState.fresh(today)

    def replace_state(self, state: LedgerState) -> None:
        self.state = state
