"""
Streamlit Frontend for SimpleBudget

Thin presentation layer over BudgetTracker. Every figure shown comes from
the tracker; nothing is computed here beyond formatting.

Tabs:
- Budget: remaining allowance, progress bar, add form, this month's entries
- History: archived months against the goal frozen when they closed
- Settings: annual budget, export, import, clear
"""

from datetime import date

import streamlit as st

from simplebudget.accounting import NotFoundError
from simplebudget.models.ledger import CURRENT_BUCKET, ProgressLevel, TransactionKind
from simplebudget.money import format_currency, format_month_label
from simplebudget.orchestrator import BudgetTracker, create_tracker
from simplebudget.serialization import MalformedImportError
from simplebudget.services.storage import PersistenceError
from simplebudget.validation import ValidationError


st.set_page_config(
    page_title="SimpleBudget",
    page_icon="💰",
    layout="centered",
)

QUICK_AMOUNTS = [5, 10, 20, 50]


def get_tracker() -> BudgetTracker:
    """One tracker per browser session, opened (and rolled over) once."""
    if "tracker" not in st.session_state:
        tracker = create_tracker(use_storage=True)
        try:
            result = tracker.open()
        except PersistenceError as e:
            result = None
            st.session_state.flash = f"Storage error - data may not be saved ({e})"
        if result is not None:
            st.session_state.flash = (
                "New month started - budget reset to "
                f"{format_currency(result.new_allowance, tracker.currency_symbol)}"
            )
        st.session_state.tracker = tracker
    return st.session_state.tracker


def signed(amount, symbol: str) -> str:
    sign = "-" if amount < 0 else "+"
    return f"{sign}{format_currency(amount, symbol)}"


def run_action(action, success_message: str) -> bool:
    """Run a tracker mutation and turn its failures into messages."""
    try:
        action()
    except ValidationError as e:
        st.error(str(e))
        return False
    except NotFoundError:
        st.error("That transaction no longer exists")
        return False
    except PersistenceError:
        st.warning("Storage error - data may not be saved")
        return True
    st.session_state.flash = success_message
    return True


def main():
    tracker = get_tracker()
    symbol = tracker.currency_symbol

    st.title("💰 SimpleBudget")
    st.caption(format_month_label(tracker.state.current_month))

    if st.button("↻ Refresh"):
        try:
            result = tracker.check_rollover()
        except PersistenceError:
            result = None
            st.warning("Storage error - data may not be saved")
        if result is not None:
            st.session_state.flash = (
                f"New month started - budget reset to {format_currency(result.new_allowance, symbol)}"
            )
        st.rerun()

    flash = st.session_state.pop("flash", None)
    if flash:
        st.toast(flash)

    budget_tab, history_tab, settings_tab = st.tabs(["Budget", "History", "Settings"])
    with budget_tab:
        render_budget_tab(tracker, symbol)
    with history_tab:
        render_history_tab(tracker, symbol)
    with settings_tab:
        render_settings_tab(tracker, symbol)


def render_budget_tab(tracker: BudgetTracker, symbol: str):
    snap = tracker.snapshot()

    label = "Over budget" if snap.over_budget else "Remaining this month"
    st.metric(label, f"{'-' if snap.over_budget else ''}{format_currency(snap.remaining, symbol)}")
    st.progress(snap.progress_pct / 100)
    if snap.progress_level is ProgressLevel.DANGER:
        st.error(f"{snap.progress_pct:.0f}% of this month's allowance used")
    elif snap.progress_level is ProgressLevel.WARNING:
        st.warning(f"{snap.progress_pct:.0f}% of this month's allowance used")

    meta = f"Goal: {format_currency(snap.goal, symbol)}"
    if snap.spent > 0:
        meta += f"  •  Spent: {format_currency(snap.spent, symbol)}"
    if snap.income > 0:
        meta += f"  •  Income: {format_currency(snap.income, symbol)}"
    st.caption(meta)

    st.subheader("Add transaction")
    kind = st.radio(
        "Type",
        [TransactionKind.EXPENSE, TransactionKind.INCOME],
        format_func=lambda k: k.value.title(),
        horizontal=True,
    )
    quick = st.columns(len(QUICK_AMOUNTS))
    for column, value in zip(quick, QUICK_AMOUNTS):
        if column.button(f"{symbol}{value}"):
            st.session_state.amount_input = float(value)

    with st.form("add_transaction", clear_on_submit=True):
        amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f", key="amount_input")
        description = st.text_input("Description")
        if st.form_submit_button(f"Add {kind.value.title()}"):
            if run_action(
                lambda: tracker.add_transaction(amount, description, kind),
                f"{'+' if kind is TransactionKind.INCOME else '-'}{format_currency(amount, symbol)} recorded",
            ):
                st.rerun()

    txs = tracker.transactions()
    st.subheader(f"This month ({len(txs)} transaction{'s' if len(txs) != 1 else ''})")
    if not txs:
        st.info("No transactions yet this month")
    for tx in txs:
        render_transaction_row(tracker, tx, CURRENT_BUCKET, symbol)


def render_transaction_row(tracker: BudgetTracker, tx, bucket: str, symbol: str):
    when = tx.date.strftime("%b %d") + (f" at {tx.time}" if tx.time else "")
    with st.expander(f"{tx.description} · {signed(tx.amount, symbol)} · {when}"):
        with st.form(f"edit_{tx.id}"):
            amount = st.number_input(
                "Amount", min_value=0.0, step=1.0, format="%.2f",
                value=float(tx.magnitude),
            )
            description = st.text_input("Description", value=tx.description)
            kind = st.radio(
                "Type",
                [TransactionKind.EXPENSE, TransactionKind.INCOME],
                index=0 if tx.kind is TransactionKind.EXPENSE else 1,
                format_func=lambda k: k.value.title(),
                horizontal=True,
            )
            new_date = st.date_input("Date", value=tx.date, max_value=date.today())
            save, delete = st.columns(2)
            if save.form_submit_button("Save"):
                if run_action(
                    lambda: tracker.edit_transaction(
                        tx.id, bucket, amount, description, kind, new_date=new_date,
                    ),
                    "Transaction updated",
                ):
                    st.rerun()
            if delete.form_submit_button("Delete"):
                if run_action(lambda: tracker.delete_transaction(tx.id, bucket), "Transaction removed"):
                    st.rerun()


def render_history_tab(tracker: BudgetTracker, symbol: str):
    summaries = tracker.history()
    if not summaries:
        st.info("No history yet. Complete a full month to see history here.")
        return

    for summary in summaries:
        status = "" if summary.under_budget else "Over "
        title = (
            f"{summary.label} · {status}{format_currency(summary.net, symbol)}"
            f" (Goal: {format_currency(summary.goal, symbol)})"
        )
        with st.expander(title):
            txs = tracker.transactions(summary.month)
            if not txs:
                st.caption("No transactions")
            for tx in txs:
                render_transaction_row(tracker, tx, summary.month, symbol)


def render_settings_tab(tracker: BudgetTracker, symbol: str):
    st.subheader("Budget")
    with st.form("settings"):
        annual = st.number_input(
            "Annual budget",
            min_value=0.0,
            step=100.0,
            format="%.2f",
            value=float(tracker.state.settings.annual_budget),
        )
        if annual > 0:
            st.caption(f"Suggested monthly: {format_currency(annual / 12, symbol)}")
        if st.form_submit_button("Save settings"):
            if run_action(lambda: tracker.save_settings(annual), "Settings saved"):
                st.rerun()

    st.subheader("Data")
    filename, text = tracker.export_data(record=False)
    st.download_button(
        "Export data",
        data=text,
        file_name=filename,
        mime="application/json",
        on_click=tracker.record_export,
        args=(filename,),
    )

    uploaded = st.file_uploader("Import data", type=["json"])
    if uploaded is not None:
        st.warning("This will replace all current data with the imported file. This cannot be undone.")
        if st.button("Import", type="primary"):
            try:
                tracker.import_data(uploaded.getvalue())
            except MalformedImportError as e:
                st.error(f"Invalid file format: {e}")
            except PersistenceError:
                st.warning("Storage error - data may not be saved")
            else:
                st.session_state.flash = "Data imported successfully"
                st.rerun()

    confirm = st.checkbox("I understand all transactions, history and settings will be deleted")
    if st.button("Clear all data", disabled=not confirm):
        if run_action(tracker.clear, "All data cleared"):
            st.rerun()

    recent = tracker.audit_logger.recent_events(10)
    if recent:
        st.subheader("Recent activity")
        for event in recent:
            st.caption(f"{event.timestamp:%Y-%m-%d %H:%M} · {event.description}")


if __name__ == "__main__":
    main()
