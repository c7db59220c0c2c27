"""Tests for lunchdash.domain.drafts input validation."""

import pytest

from lunchdash.domain.drafts import (
    InsertRequest,
    build_draft,
    parse_tag_ids,
    validate_amount,
    validate_date,
    validate_status,
)
from lunchdash.errors import ValidationError


class TestValidators:
    """Tests for the individual field validators."""

    def test_amount(self) -> None:
        """Should accept decimals and reject text."""
        assert validate_amount(" 12.50 ") == "12.50"
        assert validate_amount("-3") == "-3"
        with pytest.raises(ValidationError, match="invalid amount: abc"):
            validate_amount("abc")
        with pytest.raises(ValidationError):
            validate_amount("")

    def test_date(self) -> None:
        """Should require a real zero-padded ISO date."""
        assert validate_date("2025-01-05") == "2025-01-05"
        for bad in ("2025-1-5", "2025-02-30", "01/05/2025", ""):
            with pytest.raises(ValidationError, match="expected YYYY-MM-DD"):
                validate_date(bad)

    def test_status(self) -> None:
        """Should allow only cleared and uncleared."""
        assert validate_status("cleared") == "cleared"
        with pytest.raises(ValidationError, match="must be 'cleared' or 'uncleared'"):
            validate_status("pending")

    def test_tag_ids(self) -> None:
        """Should split comma lists and skip blanks."""
        assert parse_tag_ids(["1,2", " 3 ", ""]) == [1, 2, 3]
        with pytest.raises(ValidationError, match="invalid tag ID: x"):
            parse_tag_ids(["1,x"])


class TestBuildDraft:
    """Tests for build_draft and payload building."""

    def test_requires_payee(self) -> None:
        """Should reject a blank payee."""
        with pytest.raises(ValidationError, match="payee is required"):
            build_draft(payee="  ", amount="1", date="2025-01-01")

    def test_minimal_payload(self) -> None:
        """Should omit unset optional fields."""
        draft = build_draft(payee="Cafe", amount="4.50", date="2025-01-01", currency="USD")
        assert draft.to_payload() == {
            "date": "2025-01-01",
            "amount": "4.50",
            "payee": "Cafe",
            "currency": "usd",
            "status": "uncleared",
        }

    def test_full_payload(self) -> None:
        """Should map the account to a linked account ID."""
        draft = build_draft(
            payee="Cafe",
            amount="4.50",
            date="2025-01-01",
            status="cleared",
            category_id=7,
            account_id=3,
            notes="latte",
            tags=["1", "2"],
        )
        payload = draft.to_payload()
        assert payload["category_id"] == 7
        assert payload["plaid_account_id"] == 3
        assert payload["tags"] == [1, 2]
        assert payload["notes"] == "latte"

    def test_insert_request_flags(self) -> None:
        """Should wrap drafts with the insert options."""
        draft = build_draft(payee="Cafe", amount="1", date="2025-01-01")
        payload = InsertRequest(transactions=(draft,), debit_as_negative=True).to_payload()
        assert payload["debit_as_negative"] is True
        assert payload["apply_rules"] is True
        assert payload["skip_balance_update"] is False
        assert len(payload["transactions"]) == 1
