"""CLI entry point for lunchdash."""

import sys
import tomllib
from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from lunchdash.commands.accounts import accounts_list_command
from lunchdash.commands.admin import init_command
from lunchdash.commands.categories import categories_list_command
from lunchdash.commands.dashboard import dashboard_command
from lunchdash.commands.networth import networth_get_command
from lunchdash.commands.transaction import transaction_insert_command
from lunchdash.commands.user import user_get_command
from lunchdash.config import Settings, get_config_path, load_config_or_empty, resolve_settings
from lunchdash.log import configure_logging

console = Console()

app = typer.Typer(
    name="lunchdash",
    help="Terminal dashboard for Lunch Money",
    add_completion=False,
)
transaction_app = typer.Typer(help="Transaction management commands", no_args_is_help=True)
categories_app = typer.Typer(help="Category management commands", no_args_is_help=True)
accounts_app = typer.Typer(help="Account management commands", no_args_is_help=True)
user_app = typer.Typer(help="User information commands", no_args_is_help=True)
networth_app = typer.Typer(help="Net worth calculation commands", no_args_is_help=True)

app.add_typer(transaction_app, name="transaction")
app.add_typer(categories_app, name="categories")
app.add_typer(accounts_app, name="accounts")
app.add_typer(user_app, name="user")
app.add_typer(networth_app, name="networth")

OUTPUT_HELP = "Output format: table or json"


def _flag(value: bool) -> bool | None:
    # An absent switch must not override the config file
    return True if value else None


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", help="Config file (default: XDG config dir)"),
    token: str = typer.Option(None, "--token", help="Lunch Money API token [env: LUNCHMONEY_API_TOKEN]"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    debits_as_negative: bool = typer.Option(False, "--debits-as-negative", help="Show debits as negative numbers"),
    hide_pending_transactions: bool = typer.Option(
        False, "--hide-pending-transactions", help="Hide pending transactions from all transaction lists"
    ),
    anthropic_api_key: str = typer.Option(
        None, "--anthropic-api-key", help="Anthropic API key for category recommendations [env: ANTHROPIC_API_KEY]"
    ),
    api_base_url: str = typer.Option(None, "--api-base-url", help="Lunch Money API URL [env: LUNCHMONEY_API_BASE_URL]"),
    show_user_info: bool = typer.Option(
        None, "--show-user-info/--hide-user-info", help="Show user information in the overview [default: show]"
    ),
) -> None:
    """Terminal dashboard for Lunch Money. Run without a command to open the dashboard."""
    config_path = config or get_config_path()

    try:
        file_values = load_config_or_empty(config_path)
    except tomllib.TOMLDecodeError as e:
        console.print(f"[red]Invalid config file {config_path}: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    try:
        settings = resolve_settings(
            file_values,
            {
                "config_path": config_path,
                "token": token,
                "debug": _flag(debug),
                "debits_as_negative": _flag(debits_as_negative),
                "hide_pending_transactions": _flag(hide_pending_transactions),
                "anthropic_api_key": anthropic_api_key,
                "api_base_url": api_base_url,
                "show_user_info": show_user_info,
            },
        )
    except ValueError as e:
        console.print(f"[red]Invalid setting in {config_path}: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    configure_logging(settings.debug)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        dashboard_command(settings)


@app.command(name="init")
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
) -> None:
    """Create a default configuration file."""
    settings: Settings = ctx.obj
    init_command(force, settings.config_path)


@transaction_app.command(name="insert")
def transaction_insert(
    ctx: typer.Context,
    payee: str = typer.Option(..., "--payee", help="The payee or merchant name"),
    amount: str = typer.Option(..., "--amount", help="Transaction amount (positive for expense, negative for income)"),
    date_: str = typer.Option(None, "--date", help="Transaction date (YYYY-MM-DD, defaults to today)"),
    category: int = typer.Option(0, "--category", help="Category ID for the transaction"),
    status: str = typer.Option("uncleared", "--status", help="Transaction status (cleared, uncleared)"),
    account: int = typer.Option(0, "--account", help="Account ID (linked account)"),
    currency: str = typer.Option("usd", "--currency", help="Currency code"),
    tags: list[str] = typer.Option(None, "--tags", help="Tag IDs (can be specified multiple times)"),
    notes: str = typer.Option("", "--notes", help="Additional notes for the transaction"),
    apply_rules: bool = typer.Option(True, "--apply-rules/--no-apply-rules", help="Apply rules to the transaction"),
    skip_duplicates: bool = typer.Option(
        True, "--skip-duplicates/--no-skip-duplicates", help="Skip duplicate transactions"
    ),
    check_for_recurring: bool = typer.Option(
        True, "--check-for-recurring/--no-check-for-recurring", help="Check for recurring transactions"
    ),
    skip_balance_update: bool = typer.Option(False, "--skip-balance-update", help="Skip balance update"),
) -> None:
    """Insert a new transaction."""
    transaction_insert_command(
        ctx.obj,
        payee=payee,
        amount=amount,
        date=date_ or date.today().strftime("%Y-%m-%d"),
        category=category,
        status=status,
        account=account,
        currency=currency,
        tags=tags or [],
        notes=notes,
        apply_rules=apply_rules,
        skip_duplicates=skip_duplicates,
        check_for_recurring=check_for_recurring,
        skip_balance_update=skip_balance_update,
    )


@categories_app.command(name="list")
def categories_list(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """List all categories with their IDs and details."""
    categories_list_command(ctx.obj, output)


@accounts_app.command(name="list")
def accounts_list(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """List all accounts (assets and linked accounts)."""
    accounts_list_command(ctx.obj, output)


@user_app.command(name="get")
def user_get(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Show information about the token's user."""
    user_get_command(ctx.obj, output)


@networth_app.command(name="get")
def networth_get(
    ctx: typer.Context,
    output: str = typer.Option("table", "--output", "-o", help=OUTPUT_HELP),
    breakdown: bool = typer.Option(False, "--breakdown", help="Show detailed breakdown of assets and liabilities"),
) -> None:
    """Calculate and display current net worth."""
    networth_get_command(ctx.obj, output, breakdown)


if __name__ == "__main__":
    app()
