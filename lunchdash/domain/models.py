"""Lunch Money entities and their parsers.

The parse_* functions turn raw API dictionaries into immutable dataclasses.
They are pure and tolerant: optional fields that are missing or null fall
back to empty values so a sparse API payload never raises.
"""

from dataclasses import dataclass, field
from typing import Any, NewType

# Category names are shown to users and used as breakdown labels
CategoryName = NewType("CategoryName", str)

CLEARED_STATUS = "cleared"
UNCLEARED_STATUS = "uncleared"
PENDING_STATUS = "pending"


@dataclass(frozen=True)
class Category:
    """Immutable spending or income category."""

    id: int
    name: CategoryName
    description: str = ""
    is_income: bool = False
    exclude_from_budget: bool = False
    exclude_from_totals: bool = False
    is_group: bool = False


UNCATEGORIZED = Category(
    id=0,
    name=CategoryName("Uncategorized"),
    description="Transactions without a category",
)


@dataclass(frozen=True)
class Asset:
    """Manually tracked account."""

    id: int
    name: str
    type_name: str
    subtype_name: str = ""
    display_name: str = ""
    balance: str = "0"
    to_base: float = 0.0
    currency: str = "usd"
    institution_name: str = ""
    status: str = ""


@dataclass(frozen=True)
class PlaidAccount:
    """Linked account whose balance is synced from an institution."""

    id: int
    name: str
    type: str
    subtype: str = ""
    display_name: str = ""
    balance: str = "0"
    to_base: float = 0.0
    currency: str = "usd"
    institution_name: str = ""
    status: str = ""


@dataclass(frozen=True)
class Tag:
    id: int
    name: str
    description: str = ""


@dataclass(frozen=True)
class Transaction:
    """Immutable transaction as returned by the API.

    The amount stays the API's decimal string; callers parse it on use so an
    odd value only affects the computation that reads it.
    """

    id: int
    date: str
    payee: str
    amount: str
    currency: str = "usd"
    to_base: float | None = None
    category_id: int = 0
    asset_id: int | None = None
    plaid_account_id: int | None = None
    status: str = UNCLEARED_STATUS
    notes: str = ""
    tag_ids: tuple[int, ...] = ()
    is_pending: bool = False


@dataclass(frozen=True)
class BudgetData:
    """Budget figures for one period start date."""

    start_date: str
    budget_amount: str | None = None
    budget_currency: str = ""
    spending_to_base: float = 0.0
    num_transactions: int = 0


@dataclass(frozen=True)
class Budget:
    category_id: int
    category_name: str
    category_group_name: str = ""
    is_income: bool = False
    exclude_from_budget: bool = False
    exclude_from_totals: bool = False
    data: tuple[BudgetData, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RecurringExpense:
    id: int
    payee: str
    amount: str
    currency: str = "usd"
    description: str = ""
    cadence: str = ""
    billing_date: str = ""


@dataclass(frozen=True)
class User:
    """The account owner the API token belongs to."""

    user_id: int
    user_name: str
    user_email: str = ""
    account_id: int = 0
    budget_name: str = ""
    primary_currency: str = "usd"
    api_key_label: str = ""


def _str(raw: dict[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    return default if value is None else str(value)


def _int(raw: dict[str, Any], key: str, default: int = 0) -> int:
    value = raw.get(key)
    return default if value is None else int(value)


def _optional_int(raw: dict[str, Any], key: str) -> int | None:
    value = raw.get(key)
    return None if value is None else int(value)


def _float(raw: dict[str, Any], key: str, default: float = 0.0) -> float:
    value = raw.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_category(raw: dict[str, Any]) -> Category:
    return Category(
        id=int(raw["id"]),
        name=CategoryName(_str(raw, "name")),
        description=_str(raw, "description"),
        is_income=bool(raw.get("is_income", False)),
        exclude_from_budget=bool(raw.get("exclude_from_budget", False)),
        exclude_from_totals=bool(raw.get("exclude_from_totals", False)),
        is_group=bool(raw.get("is_group", False)),
    )


def parse_asset(raw: dict[str, Any]) -> Asset:
    return Asset(
        id=int(raw["id"]),
        name=_str(raw, "name"),
        type_name=_str(raw, "type_name"),
        subtype_name=_str(raw, "subtype_name"),
        display_name=_str(raw, "display_name"),
        balance=_str(raw, "balance", "0"),
        to_base=_float(raw, "to_base", _float(raw, "balance")),
        currency=_str(raw, "currency", "usd").lower(),
        institution_name=_str(raw, "institution_name"),
        status=_str(raw, "status"),
    )


def parse_plaid_account(raw: dict[str, Any]) -> PlaidAccount:
    return PlaidAccount(
        id=int(raw["id"]),
        name=_str(raw, "name"),
        type=_str(raw, "type"),
        subtype=_str(raw, "subtype"),
        display_name=_str(raw, "display_name"),
        balance=_str(raw, "balance", "0"),
        to_base=_float(raw, "to_base", _float(raw, "balance")),
        currency=_str(raw, "currency", "usd").lower(),
        institution_name=_str(raw, "institution_name"),
        status=_str(raw, "status"),
    )


def parse_tag(raw: dict[str, Any]) -> Tag:
    return Tag(id=int(raw["id"]), name=_str(raw, "name"), description=_str(raw, "description"))


def parse_transaction(raw: dict[str, Any]) -> Transaction:
    """Parse a transaction from Lunch Money API format.

    Args:
        raw: Raw transaction dictionary from the API.

    Returns:
        Transaction with a null category mapped to 0 (Uncategorized).
    """
    tags = raw.get("tags") or []
    tag_ids = tuple(int(t["id"]) for t in tags if isinstance(t, dict) and t.get("id") is not None)

    to_base = raw.get("to_base")

    return Transaction(
        id=int(raw["id"]),
        date=_str(raw, "date"),
        payee=_str(raw, "payee"),
        amount=_str(raw, "amount", "0"),
        currency=_str(raw, "currency", "usd").lower(),
        to_base=None if to_base is None else _float(raw, "to_base"),
        category_id=_int(raw, "category_id"),
        asset_id=_optional_int(raw, "asset_id"),
        plaid_account_id=_optional_int(raw, "plaid_account_id"),
        status=_str(raw, "status", UNCLEARED_STATUS),
        notes=_str(raw, "notes"),
        tag_ids=tag_ids,
        is_pending=bool(raw.get("is_pending", False)),
    )


def parse_budget(raw: dict[str, Any]) -> Budget:
    """Parse a budget row.

    The API keys budget data by period start date; entries are kept in date
    order and null entries are dropped.
    """
    raw_data = raw.get("data") or {}
    data = tuple(
        BudgetData(
            start_date=start_date,
            budget_amount=None if entry.get("budget_amount") is None else str(entry["budget_amount"]),
            budget_currency=_str(entry, "budget_currency"),
            spending_to_base=_float(entry, "spending_to_base"),
            num_transactions=_int(entry, "num_transactions"),
        )
        for start_date, entry in sorted(raw_data.items())
        if isinstance(entry, dict)
    )

    return Budget(
        category_id=_int(raw, "category_id"),
        category_name=_str(raw, "category_name"),
        category_group_name=_str(raw, "category_group_name"),
        is_income=bool(raw.get("is_income", False)),
        exclude_from_budget=bool(raw.get("exclude_from_budget", False)),
        exclude_from_totals=bool(raw.get("exclude_from_totals", False)),
        data=data,
    )


def parse_recurring_expense(raw: dict[str, Any]) -> RecurringExpense:
    return RecurringExpense(
        id=int(raw["id"]),
        payee=_str(raw, "payee"),
        amount=_str(raw, "amount", "0"),
        currency=_str(raw, "currency", "usd").lower(),
        description=_str(raw, "description"),
        cadence=_str(raw, "cadence"),
        billing_date=_str(raw, "billing_date"),
    )


def parse_user(raw: dict[str, Any]) -> User:
    return User(
        user_id=_int(raw, "user_id"),
        user_name=_str(raw, "user_name"),
        user_email=_str(raw, "user_email"),
        account_id=_int(raw, "account_id"),
        budget_name=_str(raw, "budget_name"),
        primary_currency=_str(raw, "primary_currency", "usd").lower() or "usd",
        api_key_label=_str(raw, "api_key_label"),
    )
