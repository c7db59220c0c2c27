"""Joins fetched collections into a view-ready snapshot.

This module contains the functional core for the dashboard's data:
- ID-indexed lookup maps rebuilt wholesale on each fetch
- Composite items (a transaction with its category, account and tags)
- No I/O, no mutation: every update returns a new Snapshot
"""

import html
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol, TypeVar

from lunchdash.domain.models import (
    CLEARED_STATUS,
    PENDING_STATUS,
    UNCATEGORIZED,
    UNCLEARED_STATUS,
    Asset,
    Budget,
    Category,
    PlaidAccount,
    RecurringExpense,
    Tag,
    Transaction,
    User,
)
from lunchdash.domain.period import Period


class _HasID(Protocol):
    @property
    def id(self) -> int: ...


T = TypeVar("T", bound=_HasID)


class TransactionFilter(str, Enum):
    ALL = "all"
    UNCLEARED = "uncleared"
    UNCATEGORIZED = "uncategorized"


def index_by_id(items: Iterable[T]) -> dict[int, T]:
    """Build an identity map; later duplicates replace earlier ones."""
    return {item.id: item for item in items}


def build_category_index(categories: Iterable[Category]) -> dict[int, Category]:
    """Index categories by ID with the synthetic Uncategorized entry at 0."""
    index: dict[int, Category] = {UNCATEGORIZED.id: UNCATEGORIZED}
    index.update(index_by_id(categories))
    return index


@dataclass(frozen=True)
class TransactionItem:
    """A transaction joined with everything needed to display it."""

    transaction: Transaction
    category: Category
    asset: Asset | None = None
    plaid_account: PlaidAccount | None = None
    tags: tuple[Tag, ...] = ()

    @property
    def account_name(self) -> str:
        if self.plaid_account is not None:
            return html.unescape(self.plaid_account.display_name or self.plaid_account.name)
        if self.asset is not None:
            return html.unescape(self.asset.display_name or self.asset.name)
        return "Cash"

    @property
    def tag_names(self) -> str:
        if not self.tags:
            return "no tags"
        return ", ".join(html.unescape(t.name) for t in self.tags)


@dataclass(frozen=True)
class BudgetItem:
    budget: Budget
    category: Category | None

    def describe(self) -> str:
        """Summarise the first budget data entry."""
        if not self.budget.data:
            return "No budget data"

        data = self.budget.data[0]
        amount = data.budget_amount or "0"
        return (
            f"Budget: {amount} {data.budget_currency} | "
            f"Spent: {data.spending_to_base:.2f} | "
            f"Transactions: {data.num_transactions}"
        )


@dataclass(frozen=True)
class TransactionStats:
    cleared: int = 0
    uncleared: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.cleared + self.uncleared + self.pending


def transaction_stats(items: Iterable[TransactionItem]) -> TransactionStats:
    cleared = uncleared = pending = 0
    for item in items:
        status = item.transaction.status
        if item.transaction.is_pending or status == PENDING_STATUS:
            pending += 1
        elif status == CLEARED_STATUS:
            cleared += 1
        elif status == UNCLEARED_STATUS:
            uncleared += 1
    return TransactionStats(cleared=cleared, uncleared=uncleared, pending=pending)


@dataclass(frozen=True)
class Snapshot:
    """Consistent in-memory view of everything fetched so far.

    Transactions are stored most-recent-first. The period records which date
    range the transactions were fetched for.
    """

    categories: dict[int, Category] = field(default_factory=lambda: build_category_index(()))
    category_list: tuple[Category, ...] = ()
    assets: dict[int, Asset] = field(default_factory=dict)
    plaid_accounts: dict[int, PlaidAccount] = field(default_factory=dict)
    tags: dict[int, Tag] = field(default_factory=dict)
    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    recurring: tuple[RecurringExpense, ...] = ()
    user: User | None = None
    period: Period | None = None

    @property
    def currency(self) -> str:
        if self.user is None or not self.user.primary_currency:
            return "usd"
        return self.user.primary_currency

    def with_categories(self, categories: Iterable[Category]) -> "Snapshot":
        categories = tuple(categories)
        return replace(self, categories=build_category_index(categories), category_list=categories)

    def with_accounts(self, assets: Iterable[Asset], plaid_accounts: Iterable[PlaidAccount]) -> "Snapshot":
        return replace(self, assets=index_by_id(assets), plaid_accounts=index_by_id(plaid_accounts))

    def with_tags(self, tags: Iterable[Tag]) -> "Snapshot":
        return replace(self, tags=index_by_id(tags))

    def with_transactions(self, transactions: Iterable[Transaction], period: Period | None) -> "Snapshot":
        """Store transactions most-recent-first (the API returns oldest first)."""
        return replace(self, transactions=tuple(reversed(tuple(transactions))), period=period)

    def with_budgets(self, budgets: Iterable[Budget]) -> "Snapshot":
        return replace(self, budgets=tuple(budgets))

    def with_recurring(self, recurring: Iterable[RecurringExpense]) -> "Snapshot":
        return replace(self, recurring=tuple(recurring))

    def with_user(self, user: User) -> "Snapshot":
        return replace(self, user=user)

    def category_for(self, category_id: int | None) -> Category:
        return self.categories.get(category_id or 0, UNCATEGORIZED)

    def join(self, transaction: Transaction) -> TransactionItem:
        """Resolve a transaction's category, account and tags."""
        asset = self.assets.get(transaction.asset_id) if transaction.asset_id is not None else None
        plaid_account = (
            self.plaid_accounts.get(transaction.plaid_account_id)
            if transaction.plaid_account_id is not None
            else None
        )
        tags = tuple(self.tags[t] for t in transaction.tag_ids if t in self.tags)

        return TransactionItem(
            transaction=transaction,
            category=self.category_for(transaction.category_id),
            asset=asset,
            plaid_account=plaid_account,
            tags=tags,
        )

    def transaction_items(
        self,
        filter: TransactionFilter = TransactionFilter.ALL,
        hide_pending: bool = False,
    ) -> list[TransactionItem]:
        items = []
        for t in self.transactions:
            if hide_pending and (t.is_pending or t.status == PENDING_STATUS):
                continue
            if filter is TransactionFilter.UNCLEARED and t.status != UNCLEARED_STATUS:
                continue
            if filter is TransactionFilter.UNCATEGORIZED and t.category_id != UNCATEGORIZED.id:
                continue
            items.append(self.join(t))
        return items

    def find_transaction(self, transaction_id: int | None) -> TransactionItem | None:
        for t in self.transactions:
            if t.id == transaction_id:
                return self.join(t)
        return None

    def budget_items(self) -> list[BudgetItem]:
        return [BudgetItem(budget=b, category=self.categories.get(b.category_id)) for b in self.budgets]

    def selectable_categories(self) -> list[Category]:
        """Categories a transaction can be assigned to (groups excluded)."""
        return [c for c in self.category_list if not c.is_group]
