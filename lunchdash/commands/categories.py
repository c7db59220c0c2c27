"""Category listing command."""

import sys
from dataclasses import asdict, replace

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lunchdash.commands.output import JSON_FORMAT, dash, print_json, require_client, validate_output_format
from lunchdash.config import Settings
from lunchdash.domain.models import UNCATEGORIZED, Category, CategoryName
from lunchdash.errors import LunchDashError

console = Console()


def sorted_categories(categories: list[Category]) -> list[Category]:
    """Sort by name and append the synthetic uncategorized entry."""
    ordered = sorted(categories, key=lambda c: c.name)
    ordered.append(replace(UNCATEGORIZED, name=CategoryName("uncategorized")))
    return ordered


def categories_list_command(settings: Settings, output: str = "table") -> None:
    """List all categories with their IDs and details."""
    validate_output_format(output)
    client = require_client(settings)

    try:
        categories = sorted_categories(client.get_categories())
    except LunchDashError as e:
        console.print(f"[red]Failed to fetch categories: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    if output == JSON_FORMAT:
        print_json([asdict(c) for c in categories])
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="magenta")
    table.add_column("Description", style="dim")
    table.add_column("Is Income")
    table.add_column("Exclude From Budget")
    table.add_column("Exclude From Totals")
    table.add_column("Is Group")

    for c in categories:
        table.add_row(
            str(c.id),
            escape(c.name),
            dash(c.description),
            str(c.is_income).lower(),
            str(c.exclude_from_budget).lower(),
            str(c.exclude_from_totals).lower(),
            str(c.is_group).lower(),
        )

    console.print(table)
