"""
Ledger Serializer

Produces and validates the JSON documents SimpleBudget exchanges with its
collaborators:

- the persisted document, written to the opaque store after every mutation
- the export document: the persisted document plus `exportedAt`

DESIGN DECISION: Import validation happens entirely before any state is
replaced. A candidate that fails any check raises MalformedImportError and
the caller's state is untouched.
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as SchemaError

from simplebudget.money import month_key
from simplebudget.models.ledger import STATE_VERSION, ExportDocument, LedgerState


DEFAULT_EXPORT_PREFIX = "SimpleBudget"


class MalformedImportError(ValueError):
    """An import candidate does not have the ledger document's shape."""
    pass


class StateDecodeError(ValueError):
    """The persisted blob could not be decoded into a LedgerState."""
    pass


def dump_state(state: LedgerState) -> str:
    """Serialize state for the store."""
    return json.dumps(state.to_document(), separators=(",", ":"))


def load_state(raw: str) -> LedgerState:
    """
    Decode a blob previously written by dump_state.

    Raises:
        StateDecodeError: If the blob is not valid JSON or not a valid ledger
    """
    try:
        return LedgerState.model_validate(json.loads(raw))
    except (json.JSONDecodeError, TypeError) as e:
        raise StateDecodeError(f"Stored data is not valid JSON: {e}") from e
    except SchemaError as e:
        raise StateDecodeError(f"Stored data is not a valid ledger: {e}") from e


def export_document(state: LedgerState, now: Optional[datetime] = None) -> dict:
    """The persisted document plus an ISO-8601 `exportedAt` timestamp."""
    now = now or datetime.now(timezone.utc)
    document = ExportDocument(
        **state.model_dump(),
        exported_at=now,
    ).to_document()
    return document


def export_json(state: LedgerState, now: Optional[datetime] = None) -> str:
    """Pretty-printed export document for a download."""
    return json.dumps(export_document(state, now), indent=2)


def export_filename(now: date, prefix: str = DEFAULT_EXPORT_PREFIX) -> str:
    return f"{prefix}-{now.isoformat()[:10]}.json"


def parse_import(candidate: Any, today: date) -> LedgerState:
    """
    Validate a parsed import candidate and build the replacement state.

    At minimum a `settings` object and a `transactions` array must be
    present. Missing `version`, `currentMonth` and `history` take the values
    of a fresh ledger. `exportedAt` and unknown keys are ignored.

    Raises:
        MalformedImportError: If the candidate is not a valid ledger document
    """
    if not isinstance(candidate, dict):
        raise MalformedImportError("Import must be a JSON object")
    if not isinstance(candidate.get("settings"), dict):
        raise MalformedImportError("Import is missing the 'settings' object")
    if not isinstance(candidate.get("transactions"), list):
        raise MalformedImportError("Import is missing the 'transactions' array")

    document = {
        "version": STATE_VERSION,
        "currentMonth": month_key(today),
        "history": {},
    }
    document.update({k: v for k, v in candidate.items() if v is not None})

    try:
        return LedgerState.model_validate(document)
    except SchemaError as e:
        raise MalformedImportError(f"Import is not a valid ledger: {e}") from e


def parse_import_text(raw: str, today: date) -> LedgerState:
    """
    Parse JSON text from an uploaded file and validate it.

    Raises:
        MalformedImportError: If the text is not JSON or not a ledger document
    """
    try:
        candidate = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedImportError(f"Failed to read file: {e}") from e
    return parse_import(candidate, today)
