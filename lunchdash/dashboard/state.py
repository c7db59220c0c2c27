"""Dashboard session state, events and effects.

The session is an immutable value. Events describe something that happened
(a key press, a finished fetch); effects describe I/O the runner should
perform. lunchdash.dashboard.machine maps (session, event) to
(session, effects).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from lunchdash.config import Settings
from lunchdash.domain.aggregate import Snapshot, TransactionFilter, TransactionItem
from lunchdash.domain.drafts import TransactionDraft
from lunchdash.domain.loading import BARRIER_KEYS, LoadJoin, LoadKey
from lunchdash.domain.models import Category, Transaction
from lunchdash.domain.period import Period, PeriodType, compute_period
from lunchdash.domain.recommend import CategoryRecommendation


class SessionState(str, Enum):
    OVERVIEW = "overview"
    TRANSACTIONS = "transactions"
    TRANSACTION_DETAIL = "transaction_detail"
    CATEGORIZE = "categorize"
    INSERT_TRANSACTION = "insert_transaction"
    LOADING = "loading"
    RECURRING = "recurring"
    BUDGETS = "budgets"
    CONFIG = "config"
    ERROR = "error"


# Top-level views reachable with the navigation keys
NAVIGABLE_STATES = frozenset(
    {
        SessionState.OVERVIEW,
        SessionState.TRANSACTIONS,
        SessionState.RECURRING,
        SessionState.BUDGETS,
        SessionState.CONFIG,
    }
)

# States where a form owns the keyboard
FORM_STATES = frozenset({SessionState.CATEGORIZE, SessionState.INSERT_TRANSACTION})


# Events


@dataclass(frozen=True)
class Navigate:
    target: SessionState


@dataclass(frozen=True)
class AdvancePeriod:
    pass


@dataclass(frozen=True)
class RetreatPeriod:
    pass


@dataclass(frozen=True)
class SwitchPeriodType:
    pass


@dataclass(frozen=True)
class Escape:
    pass


@dataclass(frozen=True)
class OpenCategorize:
    pass


@dataclass(frozen=True)
class CategorizeSubmitted:
    category_id: int


@dataclass(frozen=True)
class CategorizeAborted:
    pass


@dataclass(frozen=True)
class ViewDetails:
    pass


@dataclass(frozen=True)
class OpenInsert:
    pass


@dataclass(frozen=True)
class InsertSubmitted:
    draft: TransactionDraft


@dataclass(frozen=True)
class InsertAborted:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True)
class SetFilter:
    filter: TransactionFilter


@dataclass(frozen=True)
class ToggleHelp:
    pass


@dataclass(frozen=True)
class FetchSucceeded:
    """A fetch finished; payload shape depends on the key.

    Accounts carry an (assets, plaid_accounts) pair; every other key carries
    a list of entities, except user which carries a single User.
    """

    key: LoadKey
    payload: Any
    generation: int


@dataclass(frozen=True)
class FetchFailed:
    key: LoadKey
    error: Exception
    generation: int


@dataclass(frozen=True)
class TransactionUpdated:
    transaction_id: int
    ok: bool


@dataclass(frozen=True)
class TransactionUpdateFailed:
    transaction_id: int
    error: Exception


@dataclass(frozen=True)
class TransactionInserted:
    ids: tuple[int, ...]


@dataclass(frozen=True)
class TransactionInsertFailed:
    error: Exception


@dataclass(frozen=True)
class RecommendationReady:
    transaction_id: int
    recommendation: CategoryRecommendation


@dataclass(frozen=True)
class RecommendationFailed:
    transaction_id: int
    error: Exception


Event = (
    Navigate
    | AdvancePeriod
    | RetreatPeriod
    | SwitchPeriodType
    | Escape
    | OpenCategorize
    | CategorizeSubmitted
    | CategorizeAborted
    | ViewDetails
    | OpenInsert
    | InsertSubmitted
    | InsertAborted
    | Refresh
    | MoveCursor
    | SetFilter
    | ToggleHelp
    | FetchSucceeded
    | FetchFailed
    | TransactionUpdated
    | TransactionUpdateFailed
    | TransactionInserted
    | TransactionInsertFailed
    | RecommendationReady
    | RecommendationFailed
)


# Effects


@dataclass(frozen=True)
class Fetch:
    key: LoadKey
    period: Period
    generation: int


@dataclass(frozen=True)
class UpdateCategory:
    transaction_id: int
    category_id: int


@dataclass(frozen=True)
class InsertTransaction:
    draft: TransactionDraft


@dataclass(frozen=True)
class RequestRecommendation:
    transaction: Transaction
    categories: tuple[Category, ...]


@dataclass(frozen=True)
class PromptInsertForm:
    pass


Effect = Fetch | UpdateCategory | InsertTransaction | RequestRecommendation | PromptInsertForm


@dataclass(frozen=True)
class Session:
    """Immutable dashboard session.

    The join is never mutated in place once a session holds it; the machine
    copies it before marking or unmarking keys.
    """

    state: SessionState
    previous: SessionState
    period_type: PeriodType
    anchor: datetime
    period: Period
    join: LoadJoin
    generation: int = 0
    snapshot: Snapshot = field(default_factory=Snapshot)
    cursor: int = 0
    category_cursor: int = 0
    filter: TransactionFilter = TransactionFilter.ALL
    selected_transaction_id: int | None = None
    recommendation: CategoryRecommendation | None = None
    recommendation_pending: bool = False
    recommendation_error: str | None = None
    status_message: str | None = None
    error_message: str | None = None
    show_help: bool = False
    debits_as_negative: bool = False
    hide_pending: bool = False
    ai_enabled: bool = False
    show_user_info: bool = True

    def items(self) -> list[TransactionItem]:
        """Transactions visible in the list under the active filter."""
        return self.snapshot.transaction_items(self.filter, self.hide_pending)

    def current_item(self) -> TransactionItem | None:
        items = self.items()
        if not items:
            return None
        return items[min(self.cursor, len(items) - 1)]

    def selected_item(self) -> TransactionItem | None:
        return self.snapshot.find_transaction(self.selected_transaction_id)

    def category_choices(self) -> list[Category]:
        return self.snapshot.selectable_categories()

    def period_label(self) -> str:
        return self.period.label(self.period_type)


def initial_session(now: datetime, settings: Settings | None = None) -> Session:
    """Build the starting session: loading, waiting on every barrier key.

    The overview is shown once the barrier clears.
    """
    settings = settings or Settings()
    kind = PeriodType.MONTH
    return Session(
        state=SessionState.LOADING,
        previous=SessionState.OVERVIEW,
        period_type=kind,
        anchor=now,
        period=compute_period(now, kind),
        join=LoadJoin(BARRIER_KEYS),
        debits_as_negative=settings.debits_as_negative,
        hide_pending=settings.hide_pending_transactions,
        ai_enabled=settings.ai_enabled,
        show_user_info=settings.show_user_info,
    )


def start(session: Session) -> tuple[Session, list[Effect]]:
    """Dispatch every initial fetch concurrently."""
    effects: list[Effect] = [Fetch(key, session.period, session.generation) for key in LoadKey]
    return session, effects
