"""Rich renderables for each dashboard state.

Names, notes and other text from the API are escaped before they reach rich
markup, so brackets in a payee render literally.
"""

import html

from rich.console import Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from lunchdash.config import Settings
from lunchdash.dashboard.keys import help_entries
from lunchdash.dashboard.state import Session, SessionState
from lunchdash.domain.aggregate import TransactionFilter, TransactionItem, transaction_stats
from lunchdash.domain.models import User
from lunchdash.domain.money import Money
from lunchdash.domain.networth import category_total, compute_net_worth
from lunchdash.domain.spending import spending_breakdown, summarize
from lunchdash.theme import Theme

# Rows shown at once in scrolling lists
WINDOW = 20

DEFAULT_THEME = Theme()

TABS = [
    (SessionState.OVERVIEW, "Overview"),
    (SessionState.TRANSACTIONS, "Transactions"),
    (SessionState.RECURRING, "Recurring"),
    (SessionState.BUDGETS, "Budgets"),
    (SessionState.CONFIG, "Config"),
]


def plain(value: str) -> str:
    """API text made safe for markup: entities decoded, brackets escaped."""
    return escape(html.unescape(value))


def format_amount(amount: str, currency: str) -> str:
    try:
        return Money.from_decimal(amount, currency).display()
    except ValueError:
        return escape(amount)


def colored(money: Money, theme: Theme = DEFAULT_THEME) -> str:
    color = theme.expense if money.is_negative() else theme.income
    return f"[{color}]{money.display()}[/]"


def _header_style(theme: Theme) -> str:
    return f"bold {theme.primary}"


def _window(length: int, cursor: int) -> range:
    """Slice of rows to show so the cursor stays visible."""
    start = max(0, min(cursor - WINDOW // 2, length - WINDOW))
    return range(start, min(length, start + WINDOW))


def render_header(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    tabs = Text()
    for state, label in TABS:
        style = f"bold {theme.text} on {theme.background}" if session.state is state else theme.muted
        tabs.append(f" {label} ", style=style)
        tabs.append(" ")
    tabs.append(f"  {session.period_label()}", style=_header_style(theme))
    return tabs


def render_footer(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    lines = []
    if session.status_message:
        lines.append(Text(session.status_message, style=theme.warning))

    entries = help_entries(session)
    if not session.show_help:
        entries = entries[:6] + [("?", "more")]
    lines.append(Text(" • ".join(f"{k} {desc}" for k, desc in entries), style=theme.muted))
    return Group(*lines)


def render_loading(session: Session) -> RenderableType:
    _, pending = session.join.is_satisfied()
    label = f"Loading {pending.value}..." if pending else "Loading..."
    return Spinner("dots", text=label)


def render_error(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    message = session.error_message or "Unknown error"
    body = Text.assemble((message, theme.error), "\n\n", ("Press q to quit", theme.muted))
    return Panel(body, title="Error", border_style=theme.error)


def render_user(user: User | None, theme: Theme = DEFAULT_THEME) -> RenderableType:
    if user is None:
        return Text("Overview", style=_header_style(theme))

    details = [user.user_email, user.budget_name, user.primary_currency.upper()]
    return Panel(
        Text(" • ".join(d for d in details if d), style=theme.secondary_text),
        title=f"Welcome - {plain(user.user_name)}!",
        title_align="left",
        border_style=theme.border,
    )


def render_summary(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    snapshot = session.snapshot
    summary = summarize(snapshot.transactions, snapshot.categories, snapshot.currency)

    table = Table(show_header=True, header_style=_header_style(theme), title="Summary", border_style=theme.border)
    table.add_column("Income", justify="right")
    table.add_column("Spent", justify="right")
    table.add_column("Net", justify="right")
    table.add_row(colored(summary.income, theme), colored(summary.spent, theme), colored(summary.net, theme))
    return table


def render_accounts(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    snapshot = session.snapshot
    data = compute_net_worth(
        snapshot.assets.values(),
        snapshot.plaid_accounts.values(),
        snapshot.currency,
        include_breakdown=True,
    )

    tree = Tree(f"[bold]Estimated Net Worth: {colored(data.net_worth, theme)}[/bold]", guide_style=theme.border)
    if data.breakdown is None:
        return tree

    for title, groups, sign in (("Assets", data.breakdown.assets, ""), ("Liabilities", data.breakdown.liabilities, "-")):
        branch = tree.add(f"[bold]{title}[/bold]")
        for label in sorted(groups):
            accounts = groups[label]
            total = category_total(accounts, data.currency)
            group = branch.add(f"{escape(label)} ({sign}{total.display()})")
            for account in accounts:
                group.add(f"{escape(account.label())}: {sign}{account.amount.display()}")
    return tree


def render_spending(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    snapshot = session.snapshot
    rows = spending_breakdown(snapshot.transactions, snapshot.categories, snapshot.currency)

    table = Table(
        show_header=True, header_style=_header_style(theme), title="Spending Breakdown", border_style=theme.border
    )
    table.add_column("Category", style=theme.primary)
    table.add_column("Spent", justify="right")
    table.add_column("% of Total", justify="right")
    for row in rows:
        table.add_row(plain(row.label), row.total.display(), f"{row.percentage:.2f}%")
    return table


def render_overview(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    parts = [render_summary(session, theme), render_accounts(session, theme), render_spending(session, theme)]
    if session.show_user_info:
        parts.insert(0, render_user(session.snapshot.user, theme))
    return Group(*parts)


def _status_label(item: TransactionItem, theme: Theme) -> str:
    t = item.transaction
    if t.is_pending:
        return f"[{theme.warning}]pending[/]"
    if t.status == "cleared":
        return f"[{theme.success}]cleared[/]"
    return f"[{theme.muted}]{escape(t.status)}[/]"


def render_transactions(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    items = session.items()
    stats = transaction_stats(items)

    title = "Transactions"
    if session.filter is not TransactionFilter.ALL:
        title += f" ({session.filter.value})"

    table = Table(show_header=True, header_style=_header_style(theme), title=title, border_style=theme.border)
    table.add_column("Date", style=theme.primary)
    table.add_column("Payee", style=theme.text)
    table.add_column("Amount", justify="right")
    table.add_column("Category", style=theme.primary)
    table.add_column("Account", style=theme.secondary_text)
    table.add_column("Status")

    for i in _window(len(items), session.cursor):
        item = items[i]
        t = item.transaction
        table.add_row(
            escape(t.date),
            plain(t.payee),
            format_amount(t.amount, t.currency),
            plain(item.category.name),
            escape(item.account_name),
            _status_label(item, theme),
            style="reverse" if i == session.cursor else None,
        )

    counts = Text(
        f"{stats.total} transactions • {stats.cleared} cleared • {stats.uncleared} uncleared • {stats.pending} pending",
        style=theme.muted,
    )
    return Group(table, counts)


def render_detail(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    item = session.selected_item()
    if item is None:
        return Panel(Text("Transaction not found", style=theme.muted), title="Transaction", border_style=theme.border)

    t = item.transaction
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Payee", plain(t.payee))
    table.add_row("Amount", format_amount(t.amount, t.currency))
    table.add_row("Date", escape(t.date))
    table.add_row("Category", plain(item.category.name))
    table.add_row("Account", escape(item.account_name))
    table.add_row("Status", _status_label(item, theme))
    table.add_row("Tags", escape(item.tag_names))
    table.add_row("Notes", escape(t.notes) if t.notes else f"[{theme.muted}]none[/]")
    return Panel(table, title=f"Transaction {t.id}", border_style=theme.border)


def render_recommendation(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType | None:
    if not session.ai_enabled:
        return None
    if session.recommendation_pending:
        return Spinner("dots", text="Asking for a category recommendation...")
    if session.recommendation_error:
        return Panel(
            Text(session.recommendation_error, style=theme.error), title="AI Recommendation", border_style=theme.error
        )
    if session.recommendation is None:
        return None

    rec = session.recommendation
    body = Text.assemble(
        (html.unescape(rec.category_name), "bold"),
        f" ({rec.confidence:.0f}% confidence)\n",
        rec.reasoning,
        "\n\n",
        ("Press a to select it", theme.muted),
    )
    return Panel(body, title="AI Recommendation", border_style=theme.border)


def render_categorize(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    item = session.selected_item()
    choices = session.category_choices()

    title = "Categorize"
    if item is not None:
        t = item.transaction
        title = f"Categorize: {plain(t.payee)} {format_amount(t.amount, t.currency)} on {escape(t.date)}"

    table = Table(show_header=True, header_style=_header_style(theme), title=title, border_style=theme.border)
    table.add_column("Category", style=theme.primary)
    table.add_column("Description", style=theme.secondary_text)

    recommended = session.recommendation.category_id if session.recommendation else None
    for i in _window(len(choices), session.category_cursor):
        category = choices[i]
        name = plain(category.name)
        if category.id == recommended:
            name += f" [{theme.primary}]★[/]"
        table.add_row(name, plain(category.description), style="reverse" if i == session.category_cursor else None)

    panel = render_recommendation(session, theme)
    return Group(table, panel) if panel is not None else table


def render_insert(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    return Panel(
        Text("Fill in the new transaction below", style=theme.muted),
        title="Insert Transaction",
        border_style=theme.border,
    )


def render_budgets(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    table = Table(show_header=True, header_style=_header_style(theme), title="Budgets", border_style=theme.border)
    table.add_column("Category", style=theme.primary)
    table.add_column("Group", style=theme.secondary_text)
    table.add_column("Details")

    for budget_item in session.snapshot.budget_items():
        name = budget_item.category.name if budget_item.category else budget_item.budget.category_name
        table.add_row(plain(name), plain(budget_item.budget.category_group_name), escape(budget_item.describe()))
    return table


def render_recurring(session: Session, theme: Theme = DEFAULT_THEME) -> RenderableType:
    table = Table(
        show_header=True, header_style=_header_style(theme), title="Recurring Expenses", border_style=theme.border
    )
    table.add_column("Payee", style=theme.text)
    table.add_column("Amount", justify="right")
    table.add_column("Cadence", style=theme.primary)
    table.add_column("Billing Date")
    table.add_column("Description", style=theme.secondary_text)

    for expense in session.snapshot.recurring:
        table.add_row(
            plain(expense.payee),
            format_amount(expense.amount, expense.currency),
            escape(expense.cadence),
            escape(expense.billing_date),
            plain(expense.description),
        )
    return table


def render_config(settings: Settings, theme: Theme = DEFAULT_THEME) -> RenderableType:
    table = Table(show_header=True, header_style=_header_style(theme), title="Configuration", border_style=theme.border)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_column("Description", style=theme.secondary_text)

    table.add_row("Debug", str(settings.debug).lower(), "Enable debug logging")
    table.add_row("Token", escape(settings.masked_token()), "Lunch Money API token")
    table.add_row("Debits as Negative", str(settings.debits_as_negative).lower(), "Show debits as negative numbers")
    table.add_row(
        "Hide Pending Transactions",
        str(settings.hide_pending_transactions).lower(),
        "Hide pending transactions from all transaction lists",
    )
    table.add_row("Show User Info", str(settings.show_user_info).lower(), "Show user information in the overview")
    table.add_row("API Base URL", escape(settings.api_base_url), "Lunch Money API endpoint")
    table.add_row("AI Recommendations", "enabled" if settings.ai_enabled else "disabled", "Anthropic category suggestions")
    return table


def render_body(session: Session, settings: Settings) -> RenderableType:
    state = session.state
    theme = settings.theme
    if state is SessionState.LOADING:
        return render_loading(session)
    if state is SessionState.ERROR:
        return render_error(session, theme)
    if state is SessionState.OVERVIEW:
        return render_overview(session, theme)
    if state is SessionState.TRANSACTIONS:
        return render_transactions(session, theme)
    if state is SessionState.TRANSACTION_DETAIL:
        return render_detail(session, theme)
    if state is SessionState.CATEGORIZE:
        return render_categorize(session, theme)
    if state is SessionState.INSERT_TRANSACTION:
        return render_insert(session, theme)
    if state is SessionState.BUDGETS:
        return render_budgets(session, theme)
    if state is SessionState.RECURRING:
        return render_recurring(session, theme)
    return render_config(settings, theme)


def render(session: Session, settings: Settings) -> RenderableType:
    """Full screen for the current session."""
    if session.state in (SessionState.LOADING, SessionState.ERROR):
        return render_body(session, settings)
    return Group(
        render_header(session, settings.theme),
        render_body(session, settings),
        render_footer(session, settings.theme),
    )
