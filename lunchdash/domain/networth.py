"""Net worth calculation across manual assets and linked accounts.

Pure functions for netting account balances:
- Credit cards are liabilities, every other account is an asset
- Net worth is a single running signed total
- Optional per-category breakdown sorted by absolute amount
"""

import html
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from lunchdash.domain.models import Asset, PlaidAccount
from lunchdash.domain.money import Money
from lunchdash.errors import CurrencyMismatchError

logger = logging.getLogger(__name__)

CREDIT_TYPE = "credit"
CREDIT_CARD_SUBTYPE = "credit card"

ASSET_SOURCE = "asset"
PLAID_SOURCE = "plaid"


def is_liability(type_: str, subtype: str) -> bool:
    return type_ == CREDIT_TYPE and subtype == CREDIT_CARD_SUBTYPE


def category_label(type_: str, subtype: str) -> str:
    """Human-readable grouping label, e.g. "Checking" or "Credit Card"."""
    if subtype and subtype != type_:
        return subtype.title()
    return type_.title()


@dataclass(frozen=True)
class AccountSummary:
    """One account's contribution, amount in the target currency."""

    id: int
    name: str
    type: str
    amount: Money
    account_type: str
    display_name: str = ""
    subtype: str = ""
    institution_name: str = ""

    def label(self) -> str:
        return html.unescape(self.display_name or self.name)

    def to_json(self, negate: bool = False) -> dict[str, Any]:
        amount = self.amount.display()
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "amount": f"-{amount}" if negate else amount,
            "account_type": self.account_type,
        }
        # Optional fields are omitted when empty
        if self.display_name:
            data["display_name"] = self.display_name
        if self.subtype:
            data["subtype"] = self.subtype
        if self.institution_name:
            data["institution_name"] = self.institution_name
        return data


@dataclass(frozen=True)
class CategoryBreakdown:
    assets: dict[str, list[AccountSummary]] = field(default_factory=dict)
    liabilities: dict[str, list[AccountSummary]] = field(default_factory=dict)


@dataclass(frozen=True)
class NetWorthData:
    """Immutable net worth result.

    Liabilities are stored unsigned; the leading minus sign is only applied
    when rendering them.
    """

    net_worth: Money
    total_assets: Money
    total_liabilities: Money
    currency: str
    breakdown: CategoryBreakdown | None = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "net_worth": self.net_worth.display(),
            "currency": self.currency,
            "total_assets": self.total_assets.display(),
            "total_liabilities": self.total_liabilities.display(),
        }
        if self.breakdown is not None:
            data["breakdown"] = {
                "assets": {
                    label: [a.to_json() for a in accounts]
                    for label, accounts in self.breakdown.assets.items()
                },
                "liabilities": {
                    label: [a.to_json(negate=True) for a in accounts]
                    for label, accounts in self.breakdown.liabilities.items()
                },
            }
        return data


def category_total(accounts: Iterable[AccountSummary], currency: str) -> Money:
    """Unsigned sum of a breakdown category's amounts."""
    total = Money.zero(currency)
    for account in accounts:
        total = _accumulate(total, account.amount.absolute(), account.name)
    return total


def _accumulate(total: Money, amount: Money, name: str) -> Money:
    # Best effort: a failing add leaves the accumulator unchanged
    try:
        return total.add(amount)
    except CurrencyMismatchError as e:
        logger.warning(f"Skipping {name} in total: {e}")
        return total


def _summaries(
    assets: Iterable[Asset],
    plaid_accounts: Iterable[PlaidAccount],
    currency: str,
) -> list[AccountSummary]:
    summaries = []

    for asset in assets:
        try:
            amount = Money.from_decimal(asset.to_base, currency)
        except ValueError:
            logger.warning(f"Skipping asset {asset.id}: unparseable balance {asset.to_base!r}")
            continue
        summaries.append(
            AccountSummary(
                id=asset.id,
                name=asset.name,
                display_name=asset.display_name,
                type=asset.type_name,
                subtype=asset.subtype_name,
                amount=amount,
                institution_name=asset.institution_name,
                account_type=ASSET_SOURCE,
            )
        )

    for account in plaid_accounts:
        try:
            amount = Money.from_decimal(account.to_base, currency)
        except ValueError:
            logger.warning(f"Skipping linked account {account.id}: unparseable balance {account.to_base!r}")
            continue
        summaries.append(
            AccountSummary(
                id=account.id,
                name=account.name,
                display_name=account.display_name,
                type=account.type,
                subtype=account.subtype,
                amount=amount,
                institution_name=account.institution_name,
                account_type=PLAID_SOURCE,
            )
        )

    return summaries


def _sort_key(account: AccountSummary) -> tuple[int, str]:
    return (-abs(account.amount.minor), account.name)


def compute_net_worth(
    assets: Iterable[Asset],
    plaid_accounts: Iterable[PlaidAccount],
    currency: str,
    include_breakdown: bool = False,
) -> NetWorthData:
    """Net manual assets and linked accounts into a signed total.

    Args:
        assets: Manually tracked accounts.
        plaid_accounts: Linked accounts.
        currency: Target currency; every to_base figure is assumed to be
            expressed in it already.
        include_breakdown: Whether to group accounts by category label.

    Returns:
        NetWorthData where net_worth == total_assets - total_liabilities.
        Accounts with unparseable balances are left out entirely.
    """
    currency = currency.lower()
    net_worth = Money.zero(currency)
    total_assets = Money.zero(currency)
    total_liabilities = Money.zero(currency)

    asset_groups: dict[str, list[AccountSummary]] = {}
    liability_groups: dict[str, list[AccountSummary]] = {}

    for summary in _summaries(assets, plaid_accounts, currency):
        label = category_label(summary.type, summary.subtype)

        if is_liability(summary.type, summary.subtype):
            total_liabilities = _accumulate(total_liabilities, summary.amount, summary.name)
            net_worth = _accumulate(net_worth, summary.amount.negate(), summary.name)
            liability_groups.setdefault(label, []).append(summary)
        else:
            total_assets = _accumulate(total_assets, summary.amount, summary.name)
            net_worth = _accumulate(net_worth, summary.amount, summary.name)
            asset_groups.setdefault(label, []).append(summary)

    breakdown = None
    if include_breakdown:
        breakdown = CategoryBreakdown(
            assets={label: sorted(group, key=_sort_key) for label, group in asset_groups.items()},
            liabilities={label: sorted(group, key=_sort_key) for label, group in liability_groups.items()},
        )

    return NetWorthData(
        net_worth=net_worth,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        currency=currency,
        breakdown=breakdown,
    )
