"""User information command."""

import sys
from dataclasses import asdict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lunchdash.commands.output import JSON_FORMAT, print_json, require_client, validate_output_format
from lunchdash.config import Settings
from lunchdash.domain.models import User
from lunchdash.errors import LunchDashError

console = Console()


def user_rows(user: User) -> list[tuple[str, str]]:
    """Field/value pairs, skipping fields the API left empty."""
    rows = [
        ("User ID", str(user.user_id) if user.user_id else ""),
        ("Username", user.user_name),
        ("Email", user.user_email),
        ("Primary Currency", user.primary_currency),
        ("API Key Label", user.api_key_label),
        ("Budget Name", user.budget_name),
        ("Account ID", str(user.account_id) if user.account_id else ""),
    ]
    return [(field, value) for field, value in rows if value]


def user_get_command(settings: Settings, output: str = "table") -> None:
    """Show the account the API token belongs to."""
    validate_output_format(output)
    client = require_client(settings)

    try:
        user = client.get_user()
    except LunchDashError as e:
        console.print(f"[red]Failed to fetch user information: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    if output == JSON_FORMAT:
        print_json(asdict(user))
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in user_rows(user):
        table.add_row(field, escape(value))

    console.print(table)
