"""Transaction insert command."""

import logging
import sys

from rich.console import Console
from rich.markup import escape

from lunchdash.commands.output import require_client
from lunchdash.config import Settings
from lunchdash.domain.drafts import InsertRequest, build_draft
from lunchdash.errors import LunchDashError, ValidationError

console = Console()
logger = logging.getLogger(__name__)


def transaction_insert_command(
    settings: Settings,
    payee: str,
    amount: str,
    date: str,
    category: int = 0,
    status: str = "uncleared",
    account: int = 0,
    currency: str = "usd",
    tags: list[str] | None = None,
    notes: str = "",
    apply_rules: bool = True,
    skip_duplicates: bool = True,
    check_for_recurring: bool = True,
    skip_balance_update: bool = False,
) -> None:
    """Validate and insert a single transaction.

    Validation happens before any network call, so bad input never reaches
    the API.
    """
    try:
        draft = build_draft(
            payee=payee,
            amount=amount,
            date=date,
            status=status,
            currency=currency,
            category_id=category,
            account_id=account,
            notes=notes,
            tags=tags or [],
        )
    except ValidationError as e:
        console.print(f"[red]{escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    request = InsertRequest(
        transactions=(draft,),
        apply_rules=apply_rules,
        skip_duplicates=skip_duplicates,
        check_for_recurring=check_for_recurring,
        debit_as_negative=settings.debits_as_negative,
        skip_balance_update=skip_balance_update,
    )

    client = require_client(settings)
    logger.debug(f"Inserting transaction: {request.to_payload()}")

    try:
        ids = client.insert_transactions(request)
    except LunchDashError as e:
        console.print(f"[red]Failed to insert transaction: {escape(str(e))}[/red]", style="bold")
        sys.exit(1)

    if not ids:
        console.print("[red]No transaction IDs returned[/red]", style="bold")
        sys.exit(1)

    console.print(f"[green]✓[/green] Transaction inserted successfully with ID: {ids[0]}")
