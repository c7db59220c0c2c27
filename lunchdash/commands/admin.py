"""Admin commands for setting up configuration."""

import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from lunchdash.config import create_default_config, get_config_path

console = Console()


def init_command(force: bool = False, config_path: Path | None = None) -> None:
    """Write a default configuration file."""
    if config_path is None:
        config_path = get_config_path()

    try:
        # Guard: refuse to overwrite without force flag
        if config_path.exists() and not force:
            console.print("[red]Initialization failed:[/red]", style="bold")
            console.print(f"  Config already exists: {config_path}")
            console.print("\n[yellow]Use 'lunchdash init --force' to overwrite[/yellow]")
            sys.exit(1)

        console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
        create_default_config(config_path)
        console.print("[green]✓[/green] Config file created (permissions: 600)")

        console.print("\n[green]Initialization complete![/green]", style="bold")
        console.print("[dim]Add your Lunch Money API token to the 'token' setting[/dim]")

    except OSError as e:
        console.print(f"[red]Filesystem error: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)
