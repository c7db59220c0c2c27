"""Spending rollups for the overview.

Pure functions over a period's transactions:
- Per-category spending breakdown with share of total
- Income, spent and net summary figures
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from lunchdash.domain.models import UNCATEGORIZED, Category, Transaction
from lunchdash.domain.money import Money


@dataclass(frozen=True)
class CategorySpending:
    label: str
    total: Money
    percentage: float


@dataclass(frozen=True)
class PeriodSummary:
    """Signed totals; the sign of spending follows the API's debit convention."""

    income: Money
    spent: Money
    net: Money


def _resolve(categories_by_id: Mapping[int, Category], category_id: int) -> Category:
    return categories_by_id.get(category_id, UNCATEGORIZED)


def _amount(transaction: Transaction, currency: str) -> Money | None:
    try:
        return Money.from_decimal(transaction.amount, currency)
    except ValueError:
        return None


def spending_breakdown(
    transactions: Iterable[Transaction],
    categories_by_id: Mapping[int, Category],
    currency: str = "usd",
) -> list[CategorySpending]:
    """Sum spending per category.

    Transactions in income or excluded-from-totals categories are skipped,
    as are amounts that do not parse. Absolute values are summed so the
    result does not depend on the debit sign convention.

    Args:
        transactions: Transactions of the active period.
        categories_by_id: Category lookup; unknown IDs resolve to Uncategorized.
        currency: Currency the amounts are reported in.

    Returns:
        Categories sorted by total descending, ties by label ascending.
    """
    totals: dict[str, Money] = {}

    for t in transactions:
        category = _resolve(categories_by_id, t.category_id)
        if category.exclude_from_totals or category.is_income:
            continue

        amount = _amount(t, currency)
        if amount is None:
            continue

        label = category.name
        totals[label] = totals.get(label, Money.zero(currency)).add(amount.absolute())

    grand_total = sum(total.minor for total in totals.values())

    breakdown = [
        CategorySpending(
            label=label,
            total=total,
            percentage=(total.minor / grand_total * 100) if grand_total else 0.0,
        )
        for label, total in totals.items()
    ]
    breakdown.sort(key=lambda c: (-c.total.minor, c.label))
    return breakdown


def summarize(
    transactions: Iterable[Transaction],
    categories_by_id: Mapping[int, Category],
    currency: str = "usd",
) -> PeriodSummary:
    """Total income, spending and net for a period."""
    income = Money.zero(currency)
    spent = Money.zero(currency)

    for t in transactions:
        category = _resolve(categories_by_id, t.category_id)
        if category.exclude_from_totals:
            continue

        amount = _amount(t, currency)
        if amount is None:
            continue

        if category.is_income:
            income = income.add(amount)
        else:
            spent = spent.add(amount)

    return PeriodSummary(income=income, spent=spent, net=income.add(spent))
