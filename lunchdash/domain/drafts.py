"""New-transaction drafts and their validation.

Shared by the `transaction insert` command and the dashboard's insert form,
so both reject the same input before anything is sent to the API.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from lunchdash.domain.models import CLEARED_STATUS, UNCLEARED_STATUS
from lunchdash.errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"
INSERTABLE_STATUSES = (CLEARED_STATUS, UNCLEARED_STATUS)


def validate_amount(value: str) -> str:
    """Check that an amount parses as a finite decimal.

    Returns:
        The amount, stripped of surrounding whitespace.

    Raises:
        ValidationError: If the amount is not a number.
    """
    amount = (value or "").strip()
    try:
        parsed = Decimal(amount)
    except InvalidOperation:
        raise ValidationError(f"invalid amount: {value}") from None
    if not parsed.is_finite():
        raise ValidationError(f"invalid amount: {value}")
    return amount


def validate_date(value: str) -> str:
    """Check that a date is a real calendar date in YYYY-MM-DD form."""
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid date format: {value} (expected YYYY-MM-DD)") from None
    # strptime accepts unpadded fields such as 2025-1-5
    if parsed.strftime(DATE_FORMAT) != value:
        raise ValidationError(f"invalid date format: {value} (expected YYYY-MM-DD)")
    return value


def validate_status(value: str) -> str:
    if value not in INSERTABLE_STATUSES:
        raise ValidationError(f"invalid status: {value} (must be 'cleared' or 'uncleared')")
    return value


def parse_tag_ids(values: Iterable[str]) -> list[int]:
    """Parse tag IDs; each value may itself be a comma-separated list."""
    tag_ids = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip()
            if not part:
                continue
            try:
                tag_ids.append(int(part))
            except ValueError:
                raise ValidationError(f"invalid tag ID: {part}") from None
    return tag_ids


@dataclass(frozen=True)
class TransactionDraft:
    """Immutable validated transaction waiting to be inserted."""

    payee: str
    amount: str
    date: str
    currency: str = "usd"
    category_id: int | None = None
    account_id: int | None = None
    status: str = UNCLEARED_STATUS
    notes: str = ""
    tag_ids: tuple[int, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "date": self.date,
            "amount": self.amount,
            "payee": self.payee,
            "currency": self.currency,
            "status": self.status,
        }
        if self.notes:
            payload["notes"] = self.notes
        if self.tag_ids:
            payload["tags"] = list(self.tag_ids)
        if self.category_id:
            payload["category_id"] = self.category_id
        if self.account_id:
            # Account IDs given on the command line are treated as linked accounts
            payload["plaid_account_id"] = self.account_id
        return payload


@dataclass(frozen=True)
class InsertRequest:
    transactions: tuple[TransactionDraft, ...]
    apply_rules: bool = True
    skip_duplicates: bool = True
    check_for_recurring: bool = True
    debit_as_negative: bool = False
    skip_balance_update: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_payload() for t in self.transactions],
            "apply_rules": self.apply_rules,
            "skip_duplicates": self.skip_duplicates,
            "check_for_recurring": self.check_for_recurring,
            "debit_as_negative": self.debit_as_negative,
            "skip_balance_update": self.skip_balance_update,
        }


def build_draft(
    payee: str,
    amount: str,
    date: str,
    status: str = UNCLEARED_STATUS,
    currency: str = "usd",
    category_id: int | None = None,
    account_id: int | None = None,
    notes: str = "",
    tags: Iterable[str] = (),
) -> TransactionDraft:
    """Validate raw user input into a draft.

    Raises:
        ValidationError: On the first invalid field.
    """
    payee = (payee or "").strip()
    if not payee:
        raise ValidationError("payee is required")

    return TransactionDraft(
        payee=payee,
        amount=validate_amount(amount),
        date=validate_date(date),
        status=validate_status(status),
        currency=(currency or "usd").lower(),
        category_id=category_id or None,
        account_id=account_id or None,
        notes=notes or "",
        tag_ids=tuple(parse_tag_ids(tags)),
    )
