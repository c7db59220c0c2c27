"""Net worth command."""

import asyncio
import sys

from rich.console import Console
from rich.markup import escape

from lunchdash.commands.output import JSON_FORMAT, print_json, require_client, validate_output_format
from lunchdash.config import Settings
from lunchdash.domain.networth import AccountSummary, NetWorthData, category_total, compute_net_worth
from lunchdash.errors import LunchDashError
from lunchdash.lunchmoney import fetch_accounts

console = Console()


def render_categories(groups: dict[str, list[AccountSummary]], currency: str, is_liability: bool) -> None:
    """Print each category total followed by its accounts."""
    sign = "-" if is_liability else ""
    for label in sorted(groups):
        accounts = groups[label]
        if not accounts:
            continue

        total = category_total(accounts, currency)
        console.print(f"  [bold]{escape(label)}[/bold]: {sign}{total.display()}")
        for account in accounts:
            console.print(f"    {escape(account.label())}: {sign}{account.amount.display()}")


def render_net_worth(data: NetWorthData) -> None:
    console.print(f"[bold]Net Worth:[/bold] {data.net_worth.display()}\n")

    if data.breakdown is None:
        return

    if data.breakdown.assets:
        console.print("[green]ASSETS:[/green]")
        render_categories(data.breakdown.assets, data.currency, is_liability=False)
        console.print()

    if data.breakdown.liabilities:
        console.print("[red]LIABILITIES:[/red]")
        render_categories(data.breakdown.liabilities, data.currency, is_liability=True)
        console.print()

    console.print(f"Total Assets:      {data.total_assets.display()}")
    console.print(f"Total Liabilities: {data.total_liabilities.display()}")
    console.print(f"Net Worth:         {data.net_worth.display()}")


def networth_get_command(settings: Settings, output: str = "table", breakdown: bool = False) -> None:
    """Calculate current net worth from all assets and liabilities."""
    validate_output_format(output)
    client = require_client(settings)

    try:
        user = client.get_user()
    except LunchDashError as e:
        console.print(f"[red]Failed to fetch user info: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    try:
        assets, plaid_accounts = asyncio.run(fetch_accounts(client))
    except LunchDashError as e:
        console.print(f"[red]Failed to fetch accounts: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    data = compute_net_worth(assets, plaid_accounts, user.primary_currency or "usd", include_breakdown=breakdown)

    if output == JSON_FORMAT:
        print_json(data.to_json())
        return

    render_net_worth(data)
