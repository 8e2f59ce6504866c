"""
Input Validation

DESIGN DECISION: Every amount that enters the ledger goes through here
first. Validation happens before any state is touched, so a rejected input
leaves the ledger exactly as it was.

Validation NEVER silently fixes a bad amount. The only normalisation is
rounding to cents and defaulting a blank description to "Income"/"Expense",
both of which are part of the ledger's contract.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from simplebudget.money import month_key, round_currency, to_money
from simplebudget.models.ledger import MAX_DESCRIPTION_LENGTH, TransactionKind, ValidationIssue


class ValidationError(ValueError):
    """
    An input was rejected.

    Carries the individual issues so the UI can show a precise message.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> "ValidationError":
        return cls([ValidationIssue(field=field, issue_type=issue_type, message=message)])


class TransactionValidator:
    """Stateless checks shared by add, edit and settings save."""

    @staticmethod
    def validate_amount(value: Any, field: str = "amount") -> Decimal:
        """
        Require a positive finite number.

        Returns:
            The amount rounded to cents

        Raises:
            ValidationError: If the value is missing, not numeric, not finite,
                or not positive after rounding
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError.single(field, "missing", "Please enter an amount")

        try:
            amount = to_money(value)
        except ValueError:
            raise ValidationError.single(
                field, "not_numeric", f"Amount must be a number, got {value!r}"
            )

        if not amount.is_finite():
            raise ValidationError.single(field, "not_finite", "Amount must be a finite number")

        amount = round_currency(amount)
        if amount <= 0:
            raise ValidationError.single(
                field, "not_positive", "Please enter a valid amount greater than zero"
            )
        return amount

    @staticmethod
    def validate_annual_budget(value: Any) -> Decimal:
        """Annual budget may be zero but never negative."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return round_currency(0)

        try:
            amount = to_money(value)
        except ValueError:
            raise ValidationError.single(
                "annual_budget", "not_numeric", f"Annual budget must be a number, got {value!r}"
            )

        if not amount.is_finite():
            raise ValidationError.single(
                "annual_budget", "not_finite", "Annual budget must be a finite number"
            )
        amount = round_currency(amount)
        if amount < 0:
            raise ValidationError.single(
                "annual_budget", "negative", "Annual budget cannot be negative"
            )
        return amount

    @staticmethod
    def normalize_description(description: Optional[str], kind: TransactionKind) -> str:
        """
        Blank descriptions fall back to the kind's label.

        Raises:
            ValidationError: If the text is longer than MAX_DESCRIPTION_LENGTH
        """
        text = (description or "").strip()
        if len(text) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError.single(
                "description",
                "too_long",
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            )
        return text or kind.default_description

    @staticmethod
    def validate_kind(kind: Any) -> TransactionKind:
        try:
            return TransactionKind(kind)
        except ValueError:
            raise ValidationError.single(
                "kind", "invalid_kind", f"Kind must be 'expense' or 'income', got {kind!r}"
            )

    @staticmethod
    def validate_not_after_month(day: date, current_month: str, field: str = "date") -> None:
        """Entries may not be dated into a month that has not started yet."""
        if month_key(day) > current_month:
            raise ValidationError.single(
                field,
                "future_month",
                f"Date {day.isoformat()} is after the current month {current_month}",
            )
