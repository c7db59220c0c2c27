"""Key bindings: maps key names to dashboard events."""

from dataclasses import dataclass

from lunchdash.dashboard.state import (
    FORM_STATES,
    AdvancePeriod,
    CategorizeAborted,
    CategorizeSubmitted,
    Escape,
    Event,
    MoveCursor,
    Navigate,
    OpenCategorize,
    OpenInsert,
    Refresh,
    RetreatPeriod,
    Session,
    SessionState,
    SetFilter,
    SwitchPeriodType,
    ToggleHelp,
    ViewDetails,
)
from lunchdash.domain.aggregate import TransactionFilter


@dataclass(frozen=True)
class Quit:
    """Stops the dashboard; handled by the runner, never by the machine."""


QUIT_KEYS = frozenset({"q", "ctrl+c"})

NAVIGATION_KEYS = {
    "o": SessionState.OVERVIEW,
    "t": SessionState.TRANSACTIONS,
    "r": SessionState.RECURRING,
    "b": SessionState.BUDGETS,
    "g": SessionState.CONFIG,
}

CURSOR_KEYS = {
    "up": -1,
    "k": -1,
    "down": 1,
    "j": 1,
    "pageup": -10,
    "pagedown": 10,
}

GLOBAL_HELP = [
    ("o", "overview"),
    ("t", "transactions"),
    ("r", "recurring expenses"),
    ("b", "budgets"),
    ("g", "configuration"),
    ("]", "next period"),
    ("[", "previous period"),
    ("s", "switch range"),
    ("esc", "escape"),
    ("?", "help"),
    ("q", "quit"),
]

STATE_HELP = {
    SessionState.TRANSACTIONS: [
        ("c", "categorize"),
        ("enter", "details"),
        ("i", "insert"),
        ("u", "uncleared"),
        ("n", "uncategorized"),
        ("f5", "refresh"),
    ],
    SessionState.CATEGORIZE: [
        ("enter", "apply"),
        ("a", "AI pick"),
        ("backspace", "cancel"),
        ("esc", "back"),
    ],
    SessionState.TRANSACTION_DETAIL: [("esc", "back")],
}


def _toggle(session: Session, wanted: TransactionFilter) -> SetFilter:
    return SetFilter(TransactionFilter.ALL if session.filter is wanted else wanted)


def _transactions_key(key: str, session: Session) -> Event | None:
    if key == "c":
        return OpenCategorize()
    if key == "enter":
        return ViewDetails()
    if key == "u":
        return _toggle(session, TransactionFilter.UNCLEARED)
    if key == "n":
        return _toggle(session, TransactionFilter.UNCATEGORIZED)
    if key == "f5":
        return Refresh()
    return None


def _categorize_key(key: str, session: Session) -> Event | None:
    choices = session.category_choices()

    if key == "enter":
        if not choices:
            return None
        index = min(session.category_cursor, len(choices) - 1)
        return CategorizeSubmitted(choices[index].id)

    if key == "a":
        recommendation = session.recommendation
        if recommendation is None:
            return None
        for i, category in enumerate(choices):
            if category.id == recommendation.category_id:
                return MoveCursor(i - session.category_cursor)
        return None

    if key == "backspace":
        return CategorizeAborted()
    return None


def key_to_event(key: str, session: Session) -> Event | Quit | None:
    """Translate a key press into an event for the current session.

    Args:
        key: Key name such as "t", "enter", "up" or "ctrl+c".
        session: Current session; bindings depend on its state.

    Returns:
        The event, Quit, or None when the key means nothing here.
    """
    if key in QUIT_KEYS:
        return Quit()

    state = session.state
    if state in (SessionState.LOADING, SessionState.ERROR, SessionState.INSERT_TRANSACTION):
        return None

    if key == "esc":
        return Escape()

    if key in CURSOR_KEYS and state in (SessionState.TRANSACTIONS, SessionState.CATEGORIZE):
        return MoveCursor(CURSOR_KEYS[key])

    if state is SessionState.CATEGORIZE:
        return _categorize_key(key, session)

    if state is SessionState.TRANSACTIONS:
        event = _transactions_key(key, session)
        if event is not None:
            return event

    if state in FORM_STATES:
        return None

    if key in NAVIGATION_KEYS:
        return Navigate(NAVIGATION_KEYS[key])
    if key == "]":
        return AdvancePeriod()
    if key == "[":
        return RetreatPeriod()
    if key == "s":
        return SwitchPeriodType()
    if key == "i":
        return OpenInsert()
    if key == "?":
        return ToggleHelp()
    return None


def help_entries(session: Session) -> list[tuple[str, str]]:
    return STATE_HELP.get(session.state, []) + GLOBAL_HELP
