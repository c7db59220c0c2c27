"""Tests for lunchdash.domain.models API parsers."""

from lunchdash.domain.models import (
    parse_asset,
    parse_budget,
    parse_category,
    parse_plaid_account,
    parse_transaction,
    parse_user,
)


class TestParseTransaction:
    """Tests for parse_transaction."""

    def test_full_payload(self) -> None:
        """Should map every field the dashboard reads."""
        t = parse_transaction(
            {
                "id": 42,
                "date": "2025-01-15",
                "payee": "Coffee Shop",
                "amount": "4.5000",
                "currency": "USD",
                "to_base": 4.5,
                "category_id": 7,
                "asset_id": None,
                "plaid_account_id": 3,
                "status": "cleared",
                "notes": "latte",
                "tags": [{"id": 1, "name": "food"}, {"id": 2, "name": "work"}],
                "is_pending": False,
            }
        )
        assert t.id == 42
        assert t.currency == "usd"
        assert t.to_base == 4.5
        assert t.category_id == 7
        assert t.asset_id is None
        assert t.plaid_account_id == 3
        assert t.tag_ids == (1, 2)
        assert t.status == "cleared"

    def test_null_category_becomes_zero(self) -> None:
        """Should treat a null category as Uncategorized."""
        t = parse_transaction({"id": 1, "date": "2025-01-01", "payee": "X", "amount": "1", "category_id": None})
        assert t.category_id == 0

    def test_sparse_payload(self) -> None:
        """Should fill defaults for missing optional fields."""
        t = parse_transaction({"id": 1})
        assert t.payee == ""
        assert t.amount == "0"
        assert t.to_base is None
        assert t.tag_ids == ()
        assert t.notes == ""
        assert t.status == "uncleared"


class TestParseAccounts:
    """Tests for asset and linked account parsers."""

    def test_asset_to_base_falls_back_to_balance(self) -> None:
        """Should use the balance when to_base is absent."""
        asset = parse_asset({"id": 1, "name": "Savings", "type_name": "cash", "balance": "100.50"})
        assert asset.to_base == 100.5
        assert asset.currency == "usd"

    def test_unparseable_to_base_defaults_to_zero(self) -> None:
        """Should not raise on a garbage to_base."""
        account = parse_plaid_account({"id": 2, "name": "Card", "type": "credit", "to_base": "n/a"})
        assert account.to_base == 0.0

    def test_plaid_account_fields(self) -> None:
        """Should keep type and subtype."""
        account = parse_plaid_account(
            {"id": 2, "name": "Card", "type": "credit", "subtype": "credit card", "currency": "EUR"}
        )
        assert account.type == "credit"
        assert account.subtype == "credit card"
        assert account.currency == "eur"


class TestParseOthers:
    """Tests for category, budget and user parsers."""

    def test_category_flags(self) -> None:
        """Should read boolean flags with False defaults."""
        c = parse_category({"id": 5, "name": "Salary", "is_income": True})
        assert c.is_income
        assert not c.is_group
        assert c.description == ""

    def test_budget_data_sorted_by_date(self) -> None:
        """Should order budget data by period start and drop nulls."""
        budget = parse_budget(
            {
                "category_id": 3,
                "category_name": "Food",
                "data": {
                    "2025-02-01": {"budget_amount": 200, "spending_to_base": 50, "num_transactions": 2},
                    "2025-01-01": {"budget_amount": None, "spending_to_base": 10.5},
                    "2025-03-01": None,
                },
            }
        )
        assert [d.start_date for d in budget.data] == ["2025-01-01", "2025-02-01"]
        assert budget.data[0].budget_amount is None
        assert budget.data[1].budget_amount == "200"
        assert budget.data[1].num_transactions == 2

    def test_user_currency_defaults_to_usd(self) -> None:
        """Should fall back to usd for an empty primary currency."""
        user = parse_user({"user_id": 9, "user_name": "Sam", "primary_currency": ""})
        assert user.primary_currency == "usd"
        assert parse_user({"user_id": 9, "primary_currency": "CAD"}).primary_currency == "cad"
