"""
Core Data Models for SimpleBudget

These models define the persisted ledger document and the read models
handed to the presentation layer. They are designed to:
1. Enforce the ledger invariants at load/import time
2. Keep money as fixed-point Decimal, never float
3. Serialize to the camelCase JSON document the store and export use

DESIGN DECISION: Money fields are Decimal in Python and JSON numbers on the
wire. Every Money value is rounded to cents on the way in, so sums over
stored amounts never need re-rounding.

Mutation of a loaded LedgerState happens only in the accounting package
(Ledger, RolloverManager, TransactionEditor). The validators below run on
construction, so a document that violates an invariant never becomes state.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterator, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    AfterValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from simplebudget.money import (
    ZERO,
    is_month_key,
    month_key,
    round_currency,
    to_money,
)


STATE_VERSION = 1

# Name of the live current-month bucket, as opposed to a history month key
CURRENT_BUCKET = "current"

MAX_DESCRIPTION_LENGTH = 500


def _coerce_money(value: Any) -> Any:
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return to_money(value)
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_money),
    AfterValidator(round_currency),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def new_transaction_id() -> str:
    return uuid4().hex


_DOCUMENT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
    extra="ignore",
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a transaction. Stored only as the sign of the amount."""
    EXPENSE = "expense"
    INCOME = "income"

    @property
    def default_description(self) -> str:
        return "Income" if self is TransactionKind.INCOME else "Expense"


class ProgressLevel(str, Enum):
    """Colour band of the monthly progress bar."""
    OK = "ok"
    WARNING = "warning"
    DANGER = "danger"


# =============================================================================
# PERSISTED DOCUMENT
# =============================================================================

class Transaction(BaseModel):
    """
    A single dated income or expense entry.

    The sign of `amount` carries the kind: negative is an expense,
    positive is income.
    """
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=new_transaction_id, min_length=1)
    date: dt.date
    time: Optional[str] = Field(
        default=None,
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Wall-clock time the entry was recorded (HH:MM)",
    )
    amount: Money
    description: str = Field(..., min_length=1, max_length=MAX_DESCRIPTION_LENGTH)

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.INCOME if self.amount > 0 else TransactionKind.EXPENSE

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def month(self) -> str:
        return month_key(self.date)


class MonthBucket(BaseModel):
    """
    An archived month.

    `goal` is the allowance that was in effect when the month was archived.
    It is a frozen snapshot and is never recomputed.
    """
    model_config = _DOCUMENT_CONFIG

    goal: Money = ZERO
    transactions: list[Transaction] = Field(default_factory=list)


class LedgerSettings(BaseModel):
    """User settings. Older documents also carry monthlyGoal/customMonthlyGoal; those are ignored."""
    model_config = _DOCUMENT_CONFIG

    annual_budget: Money = ZERO

    @field_validator("annual_budget")
    @classmethod
    def validate_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("annualBudget cannot be negative")
        return v


class LedgerState(BaseModel):
    """
    Root of the persisted document.

    INVARIANTS:
    - every month key is a well-formed YYYY-MM string
    - `history` never contains `current_month`
    - a transaction id appears in at most one bucket
    """
    model_config = _DOCUMENT_CONFIG

    version: int = Field(default=STATE_VERSION, ge=1)
    settings: LedgerSettings = Field(default_factory=LedgerSettings)
    current_month: str
    transactions: list[Transaction] = Field(default_factory=list)
    history: dict[str, MonthBucket] = Field(default_factory=dict)

    @field_validator("current_month")
    @classmethod
    def validate_current_month(cls, v: str) -> str:
        if not is_month_key(v):
            raise ValueError(f"currentMonth must be YYYY-MM, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_buckets(self) -> "LedgerState":
        for key in self.history:
            if not is_month_key(key):
                raise ValueError(f"History key must be YYYY-MM, got {key!r}")
        if self.current_month in self.history:
            raise ValueError(
                f"History must not contain the current month {self.current_month}"
            )

        seen: set[str] = set()
        for _, tx in self.iter_transactions():
            if tx.id in seen:
                raise ValueError(f"Transaction id {tx.id!r} appears in more than one place")
            seen.add(tx.id)
        return self

    @classmethod
    def fresh(cls, today: dt.date) -> "LedgerState":
        """Empty ledger for a first run or after clearing all data."""
        return cls(current_month=month_key(today))

    def iter_transactions(self) -> Iterator[tuple[str, Transaction]]:
        """Yield (bucket, transaction) over the current month and all history."""
        for tx in self.transactions:
            yield CURRENT_BUCKET, tx
        for key, bucket in self.history.items():
            for tx in bucket.transactions:
                yield key, tx

    def to_document(self) -> dict:
        """JSON-ready persisted document."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExportDocument(LedgerState):
    """The persisted document stamped with the time it was exported."""

    exported_at: dt.datetime


# =============================================================================
# READ MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single reason an input was rejected."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_positive', 'future_month')",
    )
    message: str = Field(..., description="Human-readable description of the issue")


class BudgetSnapshot(BaseModel):
    """
    Headline figures for the current month, rounded for display.

    `remaining` may be negative, signalling the month is over budget.
    """

    month: str
    goal: Money
    spent: Money
    income: Money
    net: Money
    remaining: Money
    progress_pct: float = Field(ge=0.0, le=100.0)
    progress_level: ProgressLevel
    months_remaining: int = Field(ge=1, le=12)
    year_to_date_net: Money
    remaining_annual: Money
    transaction_count: int = Field(ge=0)

    @property
    def over_budget(self) -> bool:
        return self.remaining < 0


class MonthSummary(BaseModel):
    """One history card: an archived month against its frozen goal."""

    month: str
    label: str
    goal: Money
    spent: Money
    income: Money
    net: Money
    transaction_count: int = Field(ge=0)

    @property
    def under_budget(self) -> bool:
        return self.net <= self.goal


class RolloverResult(BaseModel):
    """What happened at a month boundary, for the user notification."""

    archived_month: str
    new_month: str
    archived_goal: Money
    new_allowance: Money
    archived_count: int = Field(ge=0)
    pruned_months: list[str] = Field(default_factory=list)
