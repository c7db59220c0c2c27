"""Shared helpers for commands that talk to the API."""

import json
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape

from lunchdash.config import Settings
from lunchdash.lunchmoney import LunchMoneyClient

TABLE_FORMAT = "table"
JSON_FORMAT = "json"
OUTPUT_FORMATS = (TABLE_FORMAT, JSON_FORMAT)

console = Console()


def validate_output_format(output: str) -> str:
    """Exit with an error unless the output format is table or json."""
    if output not in OUTPUT_FORMATS:
        console.print(
            f"[red]Invalid output format: {output} (must be one of {', '.join(OUTPUT_FORMATS)})[/red]",
            style="bold",
        )
        sys.exit(1)
    return output


def print_json(data: Any) -> None:
    # Plain print keeps the output machine-readable (no markup or wrapping)
    print(json.dumps(data, indent=2))


def create_client(settings: Settings) -> LunchMoneyClient:
    return LunchMoneyClient(settings.token, base_url=settings.api_base_url, timeout=settings.timeout)


def require_client(settings: Settings) -> LunchMoneyClient:
    """Build an API client, exiting if no token is configured."""
    if not settings.token:
        console.print("[red]No API token configured.[/red]", style="bold")
        console.print(
            "[yellow]Set LUNCHMONEY_API_TOKEN, pass --token, or add 'token' to the config file[/yellow]"
        )
        sys.exit(1)
    return create_client(settings)


def dash(value: str) -> str:
    """Table cell for API text, with a dash for empty values."""
    return escape(value) if value else "-"
