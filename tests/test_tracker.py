"""
Tests for the SimpleBudget session orchestrator

Test strategy:
1. Drive a BudgetTracker over in-memory stores with a hand-moved clock
2. Check what was persisted after each action
3. Check which audit events each action recorded
"""

import json
import logging
import pytest
from datetime import date, datetime
from decimal import Decimal

from simplebudget.accounting import NotFoundError
from simplebudget.audit import AuditLogger, configure_log_level
from simplebudget.config import get_settings
from simplebudget.models.audit import AuditEventType
from simplebudget.models.ledger import CURRENT_BUCKET
from simplebudget.orchestrator import DEFAULT_STORAGE_KEY, BudgetTracker, create_tracker
from simplebudget.serialization import MalformedImportError, dump_state, load_state
from simplebudget.services.storage import InMemoryAuditStorage, InMemoryStore, PersistenceError
from simplebudget.validation import ValidationError


def event_types(audit_storage) -> list[AuditEventType]:
    """Recorded event types, oldest first."""
    return [e.event_type for e in reversed(audit_storage.get_recent_events(1000))]


class TestOpen:
    """Tests for session start."""

    def test_first_run_starts_empty_without_writing(self, tracker, store):
        """Test a first run starts an empty ledger and writes nothing."""
        result = tracker.open()

        assert result is None
        assert tracker.is_open is True
        assert tracker.state.current_month == "2024-03"
        assert tracker.state.transactions == []
        assert store.write_count == 0

    def test_stale_state_rolls_over_and_persists(self, make_state, make_tx, store, tracker, clock):
        """Test a stored ledger from last month is rolled over and saved."""
        stale = make_state("2024-02", transactions=[make_tx("-100", date(2024, 2, 9), "f1")])
        store.set(DEFAULT_STORAGE_KEY, dump_state(stale))

        result = tracker.open()

        assert result.archived_month == "2024-02"
        assert result.new_month == "2024-03"
        stored = load_state(store.get(DEFAULT_STORAGE_KEY))
        assert stored.current_month == "2024-03"
        assert "2024-02" in stored.history

    def test_current_state_is_loaded_as_is(self, make_state, make_tx, store, tracker):
        """Test a ledger already in this month loads without a write."""
        current = make_state("2024-03", transactions=[make_tx("-5", date(2024, 3, 1), "c1")])
        store.set(DEFAULT_STORAGE_KEY, dump_state(current))
        writes = store.write_count

        assert tracker.open() is None
        assert tracker.state == current
        assert store.write_count == writes

    def test_corrupt_blob_starts_fresh(self, store, tracker, audit_storage):
        """Test an undecodable blob is audited and replaced by a fresh ledger."""
        store.set(DEFAULT_STORAGE_KEY, "{broken")

        tracker.open()

        assert tracker.state.transactions == []
        assert tracker.state.history == {}
        assert AuditEventType.STATE_LOAD_FAILED in event_types(audit_storage)

    def test_session_started_is_audited(self, tracker, audit_storage):
        """Test open records SESSION_STARTED first."""
        tracker.open()
        assert event_types(audit_storage)[0] is AuditEventType.SESSION_STARTED

    def test_events_share_the_session_id(self, tracker, audit_storage):
        """Test every event of one session carries its session id."""
        tracker.open()
        tracker.add_transaction(5, "Coffee")
        ids = {e.session_id for e in audit_storage.get_recent_events()}
        assert ids == {tracker.audit_logger.session_id}


class TestMutations:
    """Tests for add, edit, delete and settings through the tracker."""

    def test_add_persists(self, tracker, store):
        """Test an added expense is stored signed and stamped with the clock time."""
        tracker.open()
        tx = tracker.add_transaction("42.10", "Dinner")

        stored = load_state(store.get(DEFAULT_STORAGE_KEY))
        assert [t.id for t in stored.transactions] == [tx.id]
        assert stored.transactions[0].amount == Decimal("-42.10")
        assert stored.transactions[0].time == "09:30"

    def test_rejected_add_is_audited_and_not_persisted(self, tracker, store, audit_storage):
        """Test a rejected amount is audited and nothing is written."""
        tracker.open()
        with pytest.raises(ValidationError):
            tracker.add_transaction(0, "Nothing")

        assert store.write_count == 0
        assert event_types(audit_storage)[-1] is AuditEventType.VALIDATION_FAILED

    def test_overlong_description_is_a_validation_failure(self, tracker, store, audit_storage):
        """Test an over-long description is rejected like any other bad input."""
        tracker.open()
        with pytest.raises(ValidationError) as exc_info:
            tracker.add_transaction(10, "x" * 600)

        assert exc_info.value.issues[0].field == "description"
        assert tracker.state.transactions == []
        assert store.write_count == 0
        assert event_types(audit_storage)[-1] is AuditEventType.VALIDATION_FAILED

    def test_edit_move_is_audited(self, tracker, audit_storage):
        """Test an edit into another month is recorded as a move."""
        tracker.open()
        tx = tracker.add_transaction(10, "Taxi")

        result = tracker.edit_transaction(
            tx.id, CURRENT_BUCKET, 10, "Taxi", "expense", new_date=date(2024, 2, 28),
        )

        assert result.destination == "2024-02"
        assert tracker.transactions() == []
        assert [t.id for t in tracker.transactions("2024-02")] == [tx.id]
        assert event_types(audit_storage)[-1] is AuditEventType.TRANSACTION_MOVED

    def test_edit_missing_raises(self, tracker):
        """Test editing an unknown id raises NotFoundError."""
        tracker.open()
        with pytest.raises(NotFoundError):
            tracker.edit_transaction("nope", CURRENT_BUCKET, 1, "x", "expense")

    def test_delete_twice(self, tracker, store):
        """Test only a delete that removes something writes."""
        tracker.open()
        tx = tracker.add_transaction(3, "Gum")
        writes = store.write_count

        assert tracker.delete_transaction(tx.id) is True
        assert store.write_count == writes + 1
        assert tracker.delete_transaction(tx.id) is False
        assert store.write_count == writes + 1

    def test_save_settings(self, tracker, store):
        """Test the annual budget is rounded and persisted."""
        tracker.open()
        assert tracker.save_settings("24000") == Decimal("24000.00")
        assert load_state(store.get(DEFAULT_STORAGE_KEY)).settings.annual_budget == Decimal("24000")

    def test_negative_settings_rejected(self, tracker):
        """Test a negative annual budget is rejected."""
        tracker.open()
        with pytest.raises(ValidationError):
            tracker.save_settings(-5)

    def test_clear(self, tracker, store, audit_storage):
        """Test clear persists an empty ledger and is audited."""
        tracker.open()
        tracker.save_settings(1000)
        tracker.add_transaction(3, "x")

        tracker.clear()

        stored = load_state(store.get(DEFAULT_STORAGE_KEY))
        assert stored.transactions == []
        assert stored.settings.annual_budget == Decimal("0")
        assert event_types(audit_storage)[-1] is AuditEventType.DATA_CLEARED


class TestPersistenceFailure:
    """A failed write is reported while memory keeps the change."""

    def test_quota_exceeded_keeps_memory_state(self, clock, audit_storage):
        """Test a failed write raises, is audited and keeps the change in memory."""
        store = InMemoryStore(quota_bytes=50)
        tracker = BudgetTracker(store, AuditLogger(audit_storage), clock=clock)
        tracker.open()

        with pytest.raises(PersistenceError):
            tracker.add_transaction(12, "Too big to store")

        assert len(tracker.state.transactions) == 1
        assert store.get(DEFAULT_STORAGE_KEY) is None
        assert event_types(audit_storage)[-1] is AuditEventType.PERSISTENCE_FAILED


class TestImportExport:
    """Tests for whole-ledger import and export."""

    def test_export_parses_back(self, tracker):
        """Test the export is dated JSON with signed amounts."""
        tracker.open()
        tracker.add_transaction(7, "Snack")

        filename, text = tracker.export_data()

        assert filename == "SimpleBudget-2024-03-01.json"
        doc = json.loads(text)
        assert doc["currentMonth"] == "2024-03"
        assert "exportedAt" in doc
        assert doc["transactions"][0]["amount"] == -7.0

    def test_export_audit_can_be_deferred(self, tracker, audit_storage):
        """Test the export event can wait until the download happens."""
        tracker.open()
        filename, _ = tracker.export_data(record=False)
        assert AuditEventType.DATA_EXPORTED not in event_types(audit_storage)

        tracker.record_export(filename)
        assert event_types(audit_storage)[-1] is AuditEventType.DATA_EXPORTED

    def test_import_replaces_state(self, tracker, store):
        """Test a valid import replaces the ledger and is persisted."""
        tracker.open()
        tracker.add_transaction(1, "old")
        candidate = {
            "settings": {"annualBudget": 5000},
            "transactions": [{"id": "n1", "date": "2024-03-01", "amount": -2, "description": "new"}],
            "currentMonth": "2024-03",
        }

        assert tracker.import_data(candidate) == []

        assert [t.id for t in tracker.transactions()] == ["n1"]
        assert load_state(store.get(DEFAULT_STORAGE_KEY)).settings.annual_budget == Decimal("5000")

    def test_import_text(self, tracker):
        """Test an import given as JSON text."""
        tracker.open()
        tracker.import_data('{"settings": {"annualBudget": 10}, "transactions": []}')
        assert tracker.state.settings.annual_budget == Decimal("10.00")

    def test_import_prunes_old_history(self, tracker):
        """Test an import drops buckets outside the retention window."""
        tracker.open()
        candidate = {
            "settings": {},
            "transactions": [],
            "currentMonth": "2024-03",
            "history": {
                "2021-04": {"goal": 10, "transactions": []},
                "2023-09": {"goal": 10, "transactions": []},
            },
        }

        assert tracker.import_data(candidate) == ["2021-04"]
        assert list(tracker.state.history) == ["2023-09"]

    def test_import_of_last_months_file_rolls_over(self, tracker, store, audit_storage):
        """Test an import naming an earlier month is brought up to today."""
        tracker.open()
        candidate = {
            "settings": {"annualBudget": 12000},
            "currentMonth": "2024-01",
            "transactions": [],
            "history": {},
        }

        tracker.import_data(candidate)
        tx = tracker.add_transaction(10, "Coffee")

        assert tracker.state.current_month == "2024-03"
        assert "2024-01" in tracker.state.history
        assert [t.id for t in tracker.transactions()] == [tx.id]
        assert AuditEventType.MONTH_ROLLED_OVER in event_types(audit_storage)
        assert load_state(store.get(DEFAULT_STORAGE_KEY)).current_month == "2024-03"

    def test_rejected_import_leaves_state_untouched(self, tracker, store, audit_storage):
        """Test a malformed import changes nothing and is audited."""
        tracker.open()
        tracker.add_transaction(9, "keep")
        before = tracker.state.model_copy(deep=True)
        writes = store.write_count

        with pytest.raises(MalformedImportError):
            tracker.import_data({"settings": {}})

        assert tracker.state == before
        assert store.write_count == writes
        assert event_types(audit_storage)[-1] is AuditEventType.IMPORT_REJECTED


class TestReads:
    """Tests for snapshot and history through the tracker."""

    def test_snapshot(self, tracker):
        """Test the headline figures for March."""
        tracker.open()
        tracker.save_settings(12000)
        tracker.add_transaction(500, "Rent share")

        snap = tracker.snapshot()

        assert snap.month == "2024-03"
        assert snap.goal == Decimal("1150.00")
        assert snap.remaining == Decimal("650.00")
        assert snap.spent == Decimal("500.00")

    def test_history_after_rollover(self, tracker, clock):
        """Test a rolled-over month shows up as a history card."""
        tracker.open()
        tracker.save_settings(12000)
        tracker.add_transaction(200, "March shop")

        clock.now = datetime(2024, 4, 2, 8, 0)
        result = tracker.check_rollover()

        assert result.archived_goal == Decimal("1180.00")
        cards = tracker.history()
        assert [c.month for c in cards] == ["2024-03"]
        assert cards[0].net == Decimal("200")
        assert cards[0].under_budget is True

    def test_recent_events_newest_first(self, tracker):
        """Test the activity feed lists the newest event first."""
        tracker.open()
        tracker.add_transaction(1, "x")
        events = tracker.audit_logger.recent_events(limit=2)
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTION_ADDED,
            AuditEventType.SESSION_STARTED,
        ]


@pytest.fixture
def root_logger():
    """Restore the root logger after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCreateTracker:
    """Tests for building a tracker from the environment."""

    def test_settings_flow_into_tracker(self, monkeypatch, tmp_path, clock, root_logger):
        """Test environment settings reach the store and the display options."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SIMPLEBUDGET_STORAGE_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("CURRENCY_SYMBOL", "€")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        get_settings.cache_clear()

        tracker = create_tracker(clock=clock)
        tracker.open()
        tracker.add_transaction(4, "Bread")
        get_settings.cache_clear()

        assert tracker.currency_symbol == "€"
        assert (tmp_path / "data" / f"{DEFAULT_STORAGE_KEY}.json").exists()
        assert root_logger.level == logging.WARNING

    def test_log_level_can_be_reconfigured(self, root_logger):
        """Test a second call replaces the first handler and level."""
        configure_log_level("DEBUG")
        configure_log_level("warning")

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0].formatter._fmt == "%(message)s"


def test_audit_storage_failure_does_not_break_session(clock, store):
    """Test a broken audit store never blocks a mutation."""
    class BrokenAuditStorage(InMemoryAuditStorage):
        def append_event(self, event):
            raise RuntimeError("disk gone")

    tracker = BudgetTracker(store, AuditLogger(BrokenAuditStorage()), clock=clock)
    tracker.open()
    tracker.add_transaction(1, "still works")
    assert len(tracker.state.transactions) == 1
