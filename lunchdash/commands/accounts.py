"""Account listing command covering manual assets and linked accounts."""

import asyncio
import sys
from dataclasses import asdict, dataclass

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lunchdash.commands.output import JSON_FORMAT, dash, print_json, require_client, validate_output_format
from lunchdash.config import Settings
from lunchdash.domain.models import Asset, PlaidAccount
from lunchdash.domain.networth import ASSET_SOURCE, PLAID_SOURCE
from lunchdash.errors import LunchDashError
from lunchdash.lunchmoney import fetch_accounts

console = Console()


@dataclass(frozen=True)
class Account:
    """Either kind of account in one shape for listing."""

    id: int
    name: str
    type: str
    subtype: str
    balance: str
    currency: str
    institution_name: str
    status: str
    account_type: str


def from_asset(asset: Asset) -> Account:
    return Account(
        id=asset.id,
        name=asset.name,
        type=asset.type_name,
        subtype=asset.subtype_name,
        balance=asset.balance,
        currency=asset.currency,
        institution_name=asset.institution_name,
        status=asset.status,
        account_type=ASSET_SOURCE,
    )


def from_plaid_account(account: PlaidAccount) -> Account:
    return Account(
        id=account.id,
        name=account.name,
        type=account.type,
        subtype=account.subtype,
        balance=account.balance,
        currency=account.currency,
        institution_name=account.institution_name,
        status=account.status,
        account_type=PLAID_SOURCE,
    )


def merge_accounts(assets: list[Asset], plaid_accounts: list[PlaidAccount]) -> list[Account]:
    accounts = [from_asset(a) for a in assets] + [from_plaid_account(p) for p in plaid_accounts]
    return sorted(accounts, key=lambda a: a.name)


def accounts_list_command(settings: Settings, output: str = "table") -> None:
    """List all accounts with their IDs and details."""
    validate_output_format(output)
    client = require_client(settings)

    try:
        assets, plaid_accounts = asyncio.run(fetch_accounts(client))
    except LunchDashError as e:
        console.print(f"[red]Failed to fetch accounts: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    accounts = merge_accounts(assets, plaid_accounts)

    if output == JSON_FORMAT:
        print_json([asdict(a) for a in accounts])
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Type", style="cyan")
    table.add_column("Subtype")
    table.add_column("Balance", justify="right")
    table.add_column("Currency")
    table.add_column("Institution", style="dim")
    table.add_column("Status")
    table.add_column("Account Type", style="magenta")

    for a in accounts:
        table.add_row(
            str(a.id),
            escape(a.name),
            dash(a.type),
            dash(a.subtype),
            escape(a.balance),
            escape(a.currency),
            dash(a.institution_name),
            dash(a.status),
            a.account_type,
        )

    console.print(table)
