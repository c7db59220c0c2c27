"""Tests for lunchdash.domain.aggregate snapshot joins."""

from datetime import datetime

from lunchdash.domain.aggregate import (
    BudgetItem,
    Snapshot,
    TransactionFilter,
    index_by_id,
    transaction_stats,
)
from lunchdash.domain.models import (
    Asset,
    Budget,
    BudgetData,
    Category,
    CategoryName,
    PlaidAccount,
    Tag,
    Transaction,
    User,
)
from lunchdash.domain.period import PeriodType, compute_period


def make_transaction(id: int, **overrides) -> Transaction:
    values = {"id": id, "date": "2025-01-10", "payee": f"Payee {id}", "amount": "10.00"}
    values.update(overrides)
    return Transaction(**values)


def make_snapshot() -> Snapshot:
    categories = [
        Category(id=1, name=CategoryName("Food")),
        Category(id=2, name=CategoryName("Bills"), is_group=True),
        Category(id=3, name=CategoryName("Salary"), is_income=True),
    ]
    transactions = [
        make_transaction(1, category_id=1, plaid_account_id=10, status="cleared", tag_ids=(5,)),
        make_transaction(2, category_id=0, asset_id=20),
        make_transaction(3, category_id=99, is_pending=True, status="pending"),
    ]
    period = compute_period(datetime(2025, 1, 15), PeriodType.MONTH)
    return (
        Snapshot()
        .with_categories(categories)
        .with_accounts(
            [Asset(id=20, name="Wallet &amp; Change", type_name="cash")],
            [PlaidAccount(id=10, name="Checking", type="depository", display_name="My Checking")],
        )
        .with_tags([Tag(id=5, name="coffee"), Tag(id=6, name="travel")])
        .with_transactions(transactions, period)
    )


class TestIndexById:
    """Tests for index_by_id."""

    def test_later_duplicates_win(self) -> None:
        """Should keep the last item for a repeated ID."""
        index = index_by_id([Tag(id=1, name="a"), Tag(id=1, name="b")])
        assert index == {1: Tag(id=1, name="b")}


class TestSnapshot:
    """Tests for Snapshot joins and filters."""

    def test_transactions_stored_most_recent_first(self) -> None:
        """Should reverse the API's oldest-first order."""
        snapshot = make_snapshot()
        assert [t.id for t in snapshot.transactions] == [3, 2, 1]

    def test_uncategorized_always_present(self) -> None:
        """Should resolve category 0 without any fetched categories."""
        assert Snapshot().category_for(0).name == "Uncategorized"
        assert make_snapshot().category_for(None).id == 0

    def test_unknown_category_resolves_to_uncategorized(self) -> None:
        """Should not fail on a category the snapshot does not know."""
        item = make_snapshot().find_transaction(3)
        assert item is not None
        assert item.category.id == 0

    def test_join_resolves_linked_account_and_tags(self) -> None:
        """Should attach the linked account and tag objects."""
        item = make_snapshot().find_transaction(1)
        assert item is not None
        assert item.category.name == "Food"
        assert item.account_name == "My Checking"
        assert item.tag_names == "coffee"

    def test_asset_account_name_is_unescaped(self) -> None:
        """Should decode HTML entities in account names."""
        item = make_snapshot().find_transaction(2)
        assert item is not None
        assert item.account_name == "Wallet & Change"
        assert item.tag_names == "no tags"

    def test_cash_when_no_account(self) -> None:
        """Should call transactions without an account Cash."""
        snapshot = Snapshot().with_transactions([make_transaction(7)], None)
        assert snapshot.join(snapshot.transactions[0]).account_name == "Cash"

    def test_filters(self) -> None:
        """Should filter by status, category and pending flag."""
        snapshot = make_snapshot()
        uncleared = snapshot.transaction_items(TransactionFilter.UNCLEARED)
        assert [i.transaction.id for i in uncleared] == [2]
        uncategorized = snapshot.transaction_items(TransactionFilter.UNCATEGORIZED)
        assert [i.transaction.id for i in uncategorized] == [2]
        visible = snapshot.transaction_items(hide_pending=True)
        assert [i.transaction.id for i in visible] == [2, 1]

    def test_find_missing_transaction(self) -> None:
        """Should return None for an unknown ID."""
        assert make_snapshot().find_transaction(404) is None

    def test_selectable_categories_exclude_groups(self) -> None:
        """Should not offer category groups for assignment."""
        names = [c.name for c in make_snapshot().selectable_categories()]
        assert names == ["Food", "Salary"]

    def test_currency_from_user(self) -> None:
        """Should default to usd until the user is known."""
        snapshot = Snapshot()
        assert snapshot.currency == "usd"
        assert snapshot.with_user(User(user_id=1, user_name="x", primary_currency="eur")).currency == "eur"

    def test_updates_do_not_mutate(self) -> None:
        """Should leave the original snapshot untouched."""
        original = Snapshot()
        original.with_tags([Tag(id=1, name="a")])
        assert original.tags == {}


class TestStats:
    """Tests for transaction_stats."""

    def test_counts_by_status(self) -> None:
        """Should count pending separately from cleared and uncleared."""
        stats = transaction_stats(make_snapshot().transaction_items())
        assert (stats.cleared, stats.uncleared, stats.pending) == (1, 1, 1)
        assert stats.total == 3


class TestBudgetItem:
    """Tests for BudgetItem.describe."""

    def test_describe_first_entry(self) -> None:
        """Should summarise amount, spending and count."""
        budget = Budget(
            category_id=1,
            category_name="Food",
            data=(BudgetData("2025-01-01", "300", "usd", 123.456, 4),),
        )
        text = BudgetItem(budget=budget, category=None).describe()
        assert text == "Budget: 300 usd | Spent: 123.46 | Transactions: 4"

    def test_describe_without_data(self) -> None:
        """Should say there is no data."""
        budget = Budget(category_id=1, category_name="Food")
        assert BudgetItem(budget=budget, category=None).describe() == "No budget data"
