"""
Transaction Editor

Applies edits to an existing transaction. When a new date puts the
transaction in a different month it is relocated between buckets.

The relocation is atomic: the replacement transaction is built and
validated first, and only then removed from the source and inserted into
the destination. No failure can leave it in neither or both buckets.
"""

from datetime import date
from typing import Any, Optional

from simplebudget.money import month_key
from simplebudget.models.ledger import CURRENT_BUCKET, Transaction, TransactionKind
from simplebudget.accounting.ledger import Ledger, NotFoundError
from simplebudget.validation.validator import TransactionValidator


class EditResult:
    """Outcome of an edit: the updated transaction and where it now lives."""

    def __init__(self, transaction: Transaction, source: str, destination: str):
        self.transaction = transaction
        self.source = source
        self.destination = destination

    @property
    def moved(self) -> bool:
        return self.source != self.destination


class TransactionEditor:
    """Edit and delete across the current month and archived months."""

    def __init__(self, ledger: Ledger):
        self._ledger = ledger

    def edit(
        self,
        tx_id: str,
        source_bucket: str,
        amount: Any,
        description: Optional[str],
        kind: Any,
        new_date: Optional[date] = None,
        new_time: Optional[str] = None,
    ) -> EditResult:
        """
        Update a transaction, moving it if its month changes.

        Args:
            tx_id: Transaction to edit
            source_bucket: "current" or the history month key holding it
            amount: New positive magnitude
            description: New text; blank falls back to "Income"/"Expense"
            kind: expense or income
            new_date: New date, or None to keep the existing one
            new_time: New HH:MM, or None to keep the existing one

        Raises:
            NotFoundError: If the transaction is not in source_bucket
            ValidationError: If the amount is not positive, or the new date
                falls after the current month
        """
        ledger = self._ledger
        source = ledger.resolve_bucket(source_bucket)
        existing = ledger.get_transaction(tx_id, source)

        kind = TransactionValidator.validate_kind(kind)
        magnitude = TransactionValidator.validate_amount(amount)
        day = new_date if new_date is not None else existing.date
        TransactionValidator.validate_not_after_month(day, ledger.current_month)

        updated = Transaction(
            id=existing.id,
            date=day,
            time=new_time if new_time is not None else existing.time,
            amount=magnitude if kind is TransactionKind.INCOME else -magnitude,
            description=TransactionValidator.normalize_description(description, kind),
        )

        destination = source
        if new_date is not None:
            destination = ledger.resolve_bucket(month_key(new_date))

        if destination == source:
            txs = ledger.bucket_transactions(source)
            txs[txs.index(existing)] = updated
            return EditResult(updated, source, destination)

        if destination == CURRENT_BUCKET:
            dest_txs = ledger.transactions
        else:
            dest_txs = ledger.ensure_history_bucket(destination).transactions

        ledger.delete_transaction(tx_id, source)
        dest_txs.insert(0, updated)
        # Stable: same-date entries keep their relative order, the moved one first
        dest_txs.sort(key=lambda tx: tx.date, reverse=True)
        return EditResult(updated, source, destination)

    def delete(self, tx_id: str, bucket: str = CURRENT_BUCKET) -> bool:
        """Idempotent removal from whichever bucket is named."""
        return self._ledger.delete_transaction(tx_id, bucket)

    def locate(self, tx_id: str) -> str:
        """
        Bucket currently holding a transaction.

        Raises:
            NotFoundError: If no bucket holds it
        """
        found = self._ledger.find(tx_id)
        if found is None:
            raise NotFoundError(f"Transaction {tx_id} not found")
        return found[0]
