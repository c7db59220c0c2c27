"""Interactive dashboard command."""

import sys

from rich.console import Console

from lunchdash.commands.output import require_client
from lunchdash.config import Settings
from lunchdash.dashboard.app import run_dashboard
from lunchdash.log import configure_dashboard_logging
from lunchdash.recommender import build_recommender

console = Console()


def dashboard_command(settings: Settings) -> None:
    """Launch the full-screen dashboard."""
    client = require_client(settings)

    if not sys.stdin.isatty():
        console.print("[red]The dashboard needs an interactive terminal.[/red]", style="bold")
        sys.exit(1)

    configure_dashboard_logging(settings.debug)
    recommender = build_recommender(settings.anthropic_api_key, settings.ai_model)
    run_dashboard(client, settings, recommender)
