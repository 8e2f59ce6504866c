"""
Session Orchestrator for SimpleBudget

This module ties together the accounting engine, the store and the audit
trail, and defines what one app session does:
1. Open: load the stored ledger, run the rollover check, persist
2. Act: add / edit / delete transactions, save settings, import, export, clear
3. Read: headline snapshot and history cards

DESIGN DECISION: The orchestrator enforces the session boundaries:
- The rollover check runs before any budget figure is read
- Every mutation is persisted immediately and audited
- A failed write is reported, not rolled back: memory stays ahead of the
  store until the next successful write
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from simplebudget.accounting import (
    EditResult,
    Ledger,
    RolloverManager,
    TransactionEditor,
    budget_snapshot,
    month_summaries,
)
from simplebudget.audit import AuditLogger, configure_log_level
from simplebudget.config import get_settings
from simplebudget.models.audit import AuditEventBuilder
from simplebudget.models.ledger import (
    CURRENT_BUCKET,
    BudgetSnapshot,
    LedgerState,
    MonthSummary,
    RolloverResult,
    Transaction,
    TransactionKind,
)
from simplebudget.serialization import (
    MalformedImportError,
    StateDecodeError,
    dump_state,
    export_filename,
    export_json,
    load_state,
    parse_import,
    parse_import_text,
)
from simplebudget.services.storage import (
    InMemoryAuditStorage,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    PersistenceError,
    StorageError,
)
from simplebudget.validation import ValidationError


DEFAULT_STORAGE_KEY = "simpleBudgetData"


class BudgetTracker:
    """
    One session over the persisted ledger.

    Flow:
    1. open() → load, rollover check, persist if the month changed
    2. mutations → accounting engine → persist → audit
    3. snapshot()/history() → pure calculator reads

    Single writer: nothing here guards against a second session writing
    the same key.
    """

    def __init__(
        self,
        store: KeyValueStore,
        audit_logger: Optional[AuditLogger] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        retention_years: int = 1,
        warning_pct: float = 70.0,
        danger_pct: float = 90.0,
        currency_symbol: str = "$",
        export_prefix: str = "SimpleBudget",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._storage_key = storage_key
        self._rollover = RolloverManager(retention_years)
        self._warning_pct = warning_pct
        self._danger_pct = danger_pct
        self.currency_symbol = currency_symbol
        self._export_prefix = export_prefix
        self._clock = clock

        self.ledger = Ledger.fresh(self._today())
        self._editor = TransactionEditor(self.ledger)
        self.is_open = False

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._clock().date()

    @property
    def state(self) -> LedgerState:
        return self.ledger.state

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def open(self) -> Optional[RolloverResult]:
        """
        Load the stored ledger and bring it up to the current month.

        An unreadable or corrupt stored document is logged and replaced by
        an empty ledger.

        Returns:
            The rollover that happened, or None if the ledger was current

        Raises:
            PersistenceError: If the post-rollover write fails
        """
        self.ledger.replace_state(self._load())
        self.is_open = True
        self._audit_logger.log(AuditEventBuilder.session_started(self.state.current_month))
        return self.check_rollover()

    def check_rollover(self) -> Optional[RolloverResult]:
        """Run the month-boundary check; persists when a rollover happens."""
        result = self._roll_over()
        if result is not None:
            self._persist()
        return result

    def _roll_over(self) -> Optional[RolloverResult]:
        result = self._rollover.check(self.ledger, self._today())
        if result is not None:
            self._audit_logger.log(AuditEventBuilder.month_rolled_over(
                archived_month=result.archived_month,
                new_month=result.new_month,
                archived_goal=str(result.archived_goal),
                new_allowance=str(result.new_allowance),
                pruned_months=result.pruned_months,
            ))
        return result

    def _load(self) -> LedgerState:
        try:
            raw = self._store.get(self._storage_key)
        except StorageError as e:
            self._audit_logger.log(AuditEventBuilder.state_load_failed(str(e)))
            return LedgerState.fresh(self._today())

        if raw is None:
            return LedgerState.fresh(self._today())

        try:
            return load_state(raw)
        except StateDecodeError as e:
            self._audit_logger.log(AuditEventBuilder.state_load_failed(str(e)))
            return LedgerState.fresh(self._today())

    def _persist(self) -> None:
        try:
            self._store.set(self._storage_key, dump_state(self.state))
        except PersistenceError as e:
            self._audit_logger.log(AuditEventBuilder.persistence_failed(str(e)))
            raise

    def _reject(self, operation: str, error: ValidationError) -> None:
        self._audit_logger.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=[issue.model_dump() for issue in error.issues],
        ))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        amount: Any,
        description: Optional[str] = None,
        kind: Any = TransactionKind.EXPENSE,
    ) -> Transaction:
        """
        Record an expense or income now.

        Raises:
            ValidationError: If the amount is not a positive number
            PersistenceError: If the write fails (the entry is kept in memory)
        """
        try:
            tx = self.ledger.add_transaction(amount, description, kind, now=self._now())
        except ValidationError as e:
            self._reject("add_transaction", e)
            raise

        self._audit_logger.log(AuditEventBuilder.transaction_added(
            tx_id=tx.id,
            amount=str(tx.amount),
            month=self.state.current_month,
        ))
        self._persist()
        return tx

    def edit_transaction(
        self,
        tx_id: str,
        bucket: str,
        amount: Any,
        description: Optional[str],
        kind: Any,
        new_date: Optional[date] = None,
        new_time: Optional[str] = None,
    ) -> EditResult:
        """
        Edit a transaction in the current month or an archived one.

        Raises:
            NotFoundError: If the transaction is not in `bucket`
            ValidationError: If the amount or date is rejected
            PersistenceError: If the write fails (the edit is kept in memory)
        """
        try:
            result = self._editor.edit(
                tx_id, bucket, amount, description, kind,
                new_date=new_date, new_time=new_time,
            )
        except ValidationError as e:
            self._reject("edit_transaction", e)
            raise

        self._audit_logger.log(AuditEventBuilder.transaction_edited(
            tx_id=tx_id,
            source=result.source,
            destination=result.destination,
            amount=str(result.transaction.amount),
        ))
        self._persist()
        return result

    def delete_transaction(self, tx_id: str, bucket: str = CURRENT_BUCKET) -> bool:
        """
        Remove a transaction. Deleting something already gone is a no-op.

        Returns:
            True if a transaction was removed
        """
        removed = self._editor.delete(tx_id, bucket)
        self._audit_logger.log(AuditEventBuilder.transaction_deleted(
            tx_id=tx_id,
            bucket=bucket,
            removed=removed,
        ))
        if removed:
            self._persist()
        return removed

    # -------------------------------------------------------------------------
    # Settings and data management
    # -------------------------------------------------------------------------

    def save_settings(self, annual_budget: Any) -> Decimal:
        """
        Save a new annual budget. Archived goals keep their frozen values.

        Raises:
            ValidationError: If the budget is negative or not numeric
        """
        try:
            amount = self.ledger.update_settings(annual_budget)
        except ValidationError as e:
            self._reject("save_settings", e)
            raise

        self._audit_logger.log(AuditEventBuilder.settings_saved(str(amount)))
        self._persist()
        return amount

    def clear(self) -> None:
        """Reset to an empty ledger and persist it."""
        self.ledger.clear(self._today())
        self._audit_logger.log(AuditEventBuilder.data_cleared())
        self._persist()

    def export_data(self, record: bool = True) -> tuple[str, str]:
        """
        Build the export download.

        Args:
            record: Audit the export now. A UI that renders the download
                    ahead of the click passes False and calls record_export.

        Returns:
            (filename, JSON text)
        """
        now = self._now()
        filename = export_filename(now.date(), self._export_prefix)
        text = export_json(self.state, now.astimezone())
        if record:
            self.record_export(filename)
        return filename, text

    def record_export(self, filename: str) -> None:
        self._audit_logger.log(AuditEventBuilder.data_exported(filename))

    def import_data(self, candidate: Any) -> list[str]:
        """
        Replace the whole ledger with an imported document.

        `candidate` is either the parsed document or the raw JSON text.
        History outside the retention window is pruned after the swap, and a
        document whose current month has passed is rolled over to today.

        Returns:
            Month keys pruned from the imported history, oldest first

        Raises:
            MalformedImportError: If the document is rejected; nothing changes
        """
        today = self._today()
        try:
            if isinstance(candidate, (str, bytes)):
                state = parse_import_text(candidate, today)
            else:
                state = parse_import(candidate, today)
        except MalformedImportError as e:
            self._audit_logger.log(AuditEventBuilder.import_rejected(str(e)))
            raise

        self.ledger.replace_state(state)
        pruned = self._rollover.prune(self.state, today)
        self._audit_logger.log(AuditEventBuilder.data_imported(
            current_month=self.state.current_month,
            history_months=len(self.state.history),
            pruned_months=pruned,
        ))

        rolled = self._roll_over()
        if rolled is not None:
            pruned = sorted(pruned + rolled.pruned_months)
        self._persist()
        return pruned

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> BudgetSnapshot:
        """Headline figures for the current month."""
        return budget_snapshot(
            self.state,
            self._today(),
            warning_pct=self._warning_pct,
            danger_pct=self._danger_pct,
        )

    def history(self) -> list[MonthSummary]:
        """Archived months, newest first."""
        return month_summaries(self.state)

    def transactions(self, bucket: str = CURRENT_BUCKET) -> list[Transaction]:
        """Copy of a bucket's transactions in display order."""
        txs = self.ledger.bucket_transactions(bucket)
        return list(txs) if txs is not None else []


def create_tracker(
    use_storage: bool = True,
    clock: Callable[[], datetime] = datetime.now,
) -> BudgetTracker:
    """
    Factory function to create a configured tracker.

    Args:
        use_storage: Whether to persist to the JSON file store.
                    Set to False to keep everything in memory.
        clock: Source of "now"

    Returns:
        An unopened BudgetTracker; call open() before reading figures
    """
    settings = get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    configure_log_level(app_settings.log_level)
    audit_logger = AuditLogger(InMemoryAuditStorage())

    store: KeyValueStore
    if use_storage:
        store = JsonFileStore(
            data_dir=storage_settings.data_dir,
            write_attempts=storage_settings.write_attempts,
        )
    else:
        store = InMemoryStore()

    return BudgetTracker(
        store=store,
        audit_logger=audit_logger,
        storage_key=storage_settings.storage_key,
        retention_years=app_settings.history_retention_years,
        warning_pct=app_settings.progress_warning_pct,
        danger_pct=app_settings.progress_danger_pct,
        currency_symbol=app_settings.currency_symbol,
        export_prefix=app_settings.export_filename_prefix,
        clock=clock,
    )
