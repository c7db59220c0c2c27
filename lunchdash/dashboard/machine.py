"""Pure session state machine.

transition(session, event) returns the next session and the effects the
runner must perform. It never performs I/O itself, so every transition can be
tested by feeding events and inspecting the result.

Refetch rules are exact: each transition issues either the fetches listed
here or none, since every fetch is an observable network call.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from lunchdash.dashboard.state import (
    FORM_STATES,
    NAVIGABLE_STATES,
    AdvancePeriod,
    CategorizeAborted,
    CategorizeSubmitted,
    Effect,
    Escape,
    Event,
    Fetch,
    FetchFailed,
    FetchSucceeded,
    InsertAborted,
    InsertSubmitted,
    InsertTransaction,
    MoveCursor,
    Navigate,
    OpenCategorize,
    OpenInsert,
    PromptInsertForm,
    RecommendationFailed,
    RecommendationReady,
    Refresh,
    RequestRecommendation,
    RetreatPeriod,
    Session,
    SessionState,
    SetFilter,
    SwitchPeriodType,
    ToggleHelp,
    TransactionInserted,
    TransactionInsertFailed,
    TransactionUpdated,
    TransactionUpdateFailed,
    UpdateCategory,
    ViewDetails,
)
from lunchdash.domain.loading import LoadKey
from lunchdash.domain.period import advance, compute_period, retreat
from lunchdash.errors import AuthError

logger = logging.getLogger(__name__)

Result = tuple[Session, list[Effect]]

# Fetches triggered by navigating to a view
NAVIGATION_REFETCH: dict[SessionState, tuple[LoadKey, ...]] = {
    SessionState.TRANSACTIONS: (LoadKey.TRANSACTIONS,),
    SessionState.OVERVIEW: (LoadKey.TRANSACTIONS, LoadKey.ACCOUNTS),
    SessionState.BUDGETS: (LoadKey.BUDGETS,),
}

# The dashboard cannot render without these
CRITICAL_KEYS = frozenset({LoadKey.CATEGORIES, LoadKey.USER, LoadKey.ACCOUNTS})

# Failures that leave the barrier satisfiable with empty data
DEGRADABLE_KEYS = frozenset({LoadKey.TRANSACTIONS, LoadKey.TAGS})


def _fetch(session: Session, *keys: LoadKey) -> list[Effect]:
    return [Fetch(key, session.period, session.generation) for key in keys]


def _move(session: Session, target: SessionState, **changes: Any) -> Session:
    """Switch state, remembering the departed one."""
    return replace(session, state=target, previous=session.state, **changes)


def _with_marked(session: Session, key: LoadKey) -> Session:
    if key not in session.join:
        return session
    join = session.join.copy()
    join.mark(key)
    return replace(session, join=join)


def _with_unmarked(session: Session, key: LoadKey) -> Session:
    join = session.join.copy()
    join.unmark(key)
    return replace(session, join=join)


def _check_barrier(session: Session) -> Session:
    """Leave loading for the remembered state once every key is in."""
    if session.state is not SessionState.LOADING:
        return session

    done, pending = session.join.is_satisfied()
    if not done:
        logger.debug(f"Still loading, waiting on {pending.value if pending else '?'}")
        return session

    logger.debug(f"Loading complete, returning to {session.previous.value}")
    return replace(session, state=session.previous)


def _clamp(value: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(value, length - 1))


# Navigation


def _navigate(session: Session, event: Navigate) -> Result:
    if session.state not in NAVIGABLE_STATES:
        return session, []
    if event.target not in NAVIGABLE_STATES or event.target is session.state:
        return session, []

    moved = _move(session, event.target, show_help=False, status_message=None)
    return moved, _fetch(moved, *NAVIGATION_REFETCH.get(event.target, ()))


def _change_period(session: Session, anchor_fn: Callable[[Session], tuple]) -> Result:
    if session.state in (SessionState.LOADING, SessionState.ERROR) or session.state in FORM_STATES:
        return session, []

    anchor, kind = anchor_fn(session)
    changed = replace(
        session,
        anchor=anchor,
        period_type=kind,
        period=compute_period(anchor, kind),
        generation=session.generation + 1,
        previous=session.state,
        cursor=0,
    )
    changed = _with_unmarked(changed, LoadKey.TRANSACTIONS)

    if session.state is SessionState.BUDGETS:
        # Budgets refresh in place rather than blocking the whole UI
        return changed, _fetch(changed, LoadKey.TRANSACTIONS, LoadKey.BUDGETS)

    changed = replace(changed, state=SessionState.LOADING)
    return changed, _fetch(changed, LoadKey.TRANSACTIONS)


def _advance_period(session: Session, event: AdvancePeriod) -> Result:
    return _change_period(session, lambda s: (advance(s.anchor, s.period_type), s.period_type))


def _retreat_period(session: Session, event: RetreatPeriod) -> Result:
    return _change_period(session, lambda s: (retreat(s.anchor, s.period_type), s.period_type))


def _switch_period_type(session: Session, event: SwitchPeriodType) -> Result:
    return _change_period(session, lambda s: (s.anchor, s.period_type.toggle()))


def _escape(session: Session, event: Escape) -> Result:
    state = session.state

    if state is SessionState.CATEGORIZE:
        return (
            replace(
                session,
                state=SessionState.TRANSACTIONS,
                previous=SessionState.OVERVIEW,
                recommendation=None,
                recommendation_pending=False,
                recommendation_error=None,
            ),
            _fetch(session, LoadKey.TRANSACTIONS),
        )

    if state is SessionState.TRANSACTION_DETAIL:
        moved = _move(session, SessionState.TRANSACTIONS, selected_transaction_id=None)
        return moved, _fetch(moved, LoadKey.TRANSACTIONS)

    if state is SessionState.INSERT_TRANSACTION:
        return _insert_aborted(session, InsertAborted())

    if state in (SessionState.OVERVIEW, SessionState.LOADING, SessionState.ERROR):
        return session, []

    return _move(session, SessionState.OVERVIEW, show_help=False), []


# Transactions list


def _refresh(session: Session, event: Refresh) -> Result:
    if session.state is not SessionState.TRANSACTIONS:
        return session, []

    refreshed = _with_unmarked(session, LoadKey.TRANSACTIONS)
    refreshed = _move(refreshed, SessionState.LOADING)
    return refreshed, _fetch(refreshed, LoadKey.TRANSACTIONS)


def _move_cursor(session: Session, event: MoveCursor) -> Result:
    if session.state is SessionState.TRANSACTIONS:
        cursor = _clamp(session.cursor + event.delta, len(session.items()))
        return replace(session, cursor=cursor), []

    if session.state is SessionState.CATEGORIZE:
        cursor = _clamp(session.category_cursor + event.delta, len(session.category_choices()))
        return replace(session, category_cursor=cursor), []

    return session, []


def _set_filter(session: Session, event: SetFilter) -> Result:
    if session.state is not SessionState.TRANSACTIONS:
        return session, []
    return replace(session, filter=event.filter, cursor=0), []


def _toggle_help(session: Session, event: ToggleHelp) -> Result:
    if session.state in (SessionState.LOADING, SessionState.ERROR):
        return session, []
    return replace(session, show_help=not session.show_help), []


def _view_details(session: Session, event: ViewDetails) -> Result:
    if session.state is not SessionState.TRANSACTIONS:
        return session, []

    item = session.current_item()
    if item is None:
        return replace(session, status_message="No transaction selected"), []

    return _move(session, SessionState.TRANSACTION_DETAIL, selected_transaction_id=item.transaction.id), []


# Categorize form


def _open_categorize(session: Session, event: OpenCategorize) -> Result:
    if session.state is not SessionState.TRANSACTIONS:
        return session, []

    item = session.current_item()
    if item is None:
        return replace(session, status_message="No transaction selected"), []

    choices = session.category_choices()
    cursor = next((i for i, c in enumerate(choices) if c.id == item.category.id), 0)

    opened = _move(
        session,
        SessionState.CATEGORIZE,
        selected_transaction_id=item.transaction.id,
        category_cursor=cursor,
        recommendation=None,
        recommendation_error=None,
        recommendation_pending=session.ai_enabled,
    )

    if not session.ai_enabled:
        return opened, []
    return opened, [RequestRecommendation(item.transaction, tuple(choices))]


def _close_categorize(session: Session) -> Session:
    return _move(
        session,
        SessionState.TRANSACTIONS,
        recommendation=None,
        recommendation_pending=False,
        recommendation_error=None,
    )


def _categorize_submitted(session: Session, event: CategorizeSubmitted) -> Result:
    if session.state is not SessionState.CATEGORIZE or session.selected_transaction_id is None:
        return session, []

    transaction_id = session.selected_transaction_id
    return _close_categorize(session), [UpdateCategory(transaction_id, event.category_id)]


def _categorize_aborted(session: Session, event: CategorizeAborted) -> Result:
    if session.state is not SessionState.CATEGORIZE:
        return session, []
    return _close_categorize(session), []


def _recommendation_ready(session: Session, event: RecommendationReady) -> Result:
    if session.state is not SessionState.CATEGORIZE or session.selected_transaction_id != event.transaction_id:
        logger.debug(f"Dropping recommendation for transaction {event.transaction_id}")
        return session, []
    return replace(session, recommendation=event.recommendation, recommendation_pending=False), []


def _recommendation_failed(session: Session, event: RecommendationFailed) -> Result:
    if session.state is not SessionState.CATEGORIZE or session.selected_transaction_id != event.transaction_id:
        return session, []
    return replace(session, recommendation_pending=False, recommendation_error=str(event.error)), []


# Insert form


def _open_insert(session: Session, event: OpenInsert) -> Result:
    if session.state in (SessionState.LOADING, SessionState.ERROR, SessionState.INSERT_TRANSACTION):
        return session, []
    return _move(session, SessionState.INSERT_TRANSACTION, show_help=False), [PromptInsertForm()]


def _insert_submitted(session: Session, event: InsertSubmitted) -> Result:
    if session.state is not SessionState.INSERT_TRANSACTION:
        return session, []
    return _move(session, SessionState.TRANSACTIONS), [InsertTransaction(event.draft)]


def _insert_aborted(session: Session, event: InsertAborted) -> Result:
    if session.state is not SessionState.INSERT_TRANSACTION:
        return session, []
    return _move(session, SessionState.TRANSACTIONS), []


# Write acknowledgments


def _fail(session: Session, error: Exception, message: str) -> Session:
    if isinstance(error, AuthError):
        return replace(session, state=SessionState.ERROR, error_message=f"Check your API token: {error}")
    return replace(session, status_message=message)


def _transaction_updated(session: Session, event: TransactionUpdated) -> Result:
    if not event.ok:
        return replace(session, status_message="Transaction was not updated"), []
    updated = replace(session, status_message="Transaction updated")
    return updated, _fetch(updated, LoadKey.TRANSACTIONS)


def _transaction_update_failed(session: Session, event: TransactionUpdateFailed) -> Result:
    return _fail(session, event.error, f"Error updating transaction: {event.error}"), []


def _transaction_inserted(session: Session, event: TransactionInserted) -> Result:
    if not event.ids:
        return replace(session, status_message="Error inserting transaction: no transaction IDs returned"), []
    inserted = replace(session, status_message=f"Transaction inserted successfully with ID: {event.ids[0]}")
    return inserted, _fetch(inserted, LoadKey.TRANSACTIONS)


def _transaction_insert_failed(session: Session, event: TransactionInsertFailed) -> Result:
    return _fail(session, event.error, f"Error inserting transaction: {event.error}"), []


# Fetch results


def _is_stale(session: Session, key: LoadKey, generation: int) -> bool:
    return key in LoadKey.period_scoped() and generation != session.generation


def _apply_payload(session: Session, key: LoadKey, payload: Any) -> Session:
    snapshot = session.snapshot

    if key is LoadKey.CATEGORIES:
        snapshot = snapshot.with_categories(payload)
    elif key is LoadKey.ACCOUNTS:
        assets, plaid_accounts = payload
        snapshot = snapshot.with_accounts(assets, plaid_accounts)
    elif key is LoadKey.TRANSACTIONS:
        snapshot = snapshot.with_transactions(payload, session.period)
    elif key is LoadKey.TAGS:
        snapshot = snapshot.with_tags(payload)
    elif key is LoadKey.USER:
        snapshot = snapshot.with_user(payload)
    elif key is LoadKey.BUDGETS:
        snapshot = snapshot.with_budgets(payload)
    elif key is LoadKey.RECURRING:
        snapshot = snapshot.with_recurring(payload)

    updated = replace(session, snapshot=snapshot)
    if key is LoadKey.TRANSACTIONS:
        updated = replace(updated, cursor=_clamp(updated.cursor, len(updated.items())))
    return updated


def _fetch_succeeded(session: Session, event: FetchSucceeded) -> Result:
    if session.state is SessionState.ERROR:
        return session, []
    if _is_stale(session, event.key, event.generation):
        logger.debug(f"Discarding stale {event.key.value} (generation {event.generation} != {session.generation})")
        return session, []

    updated = _apply_payload(session, event.key, event.payload)
    updated = _with_marked(updated, event.key)
    return _check_barrier(updated), []


def _fetch_failed(session: Session, event: FetchFailed) -> Result:
    if session.state is SessionState.ERROR:
        return session, []
    if _is_stale(session, event.key, event.generation):
        logger.debug(f"Discarding stale {event.key.value} failure (generation {event.generation})")
        return session, []

    key = event.key
    logger.error(f"Fetching {key.value} failed: {event.error}")

    if isinstance(event.error, AuthError):
        return replace(session, state=SessionState.ERROR, error_message=f"Check your API token: {event.error}"), []

    if key in CRITICAL_KEYS:
        return replace(session, state=SessionState.ERROR, error_message=f"Failed to load {key.value}: {event.error}"), []

    message = f"Could not load {key.value}: {event.error}"

    if key in DEGRADABLE_KEYS:
        degraded = _apply_payload(session, key, [])
        degraded = _with_marked(replace(degraded, status_message=message), key)
        return _check_barrier(degraded), []

    return replace(session, status_message=message), []


HANDLERS: dict[type, Callable[[Session, Any], Result]] = {
    Navigate: _navigate,
    AdvancePeriod: _advance_period,
    RetreatPeriod: _retreat_period,
    SwitchPeriodType: _switch_period_type,
    Escape: _escape,
    OpenCategorize: _open_categorize,
    CategorizeSubmitted: _categorize_submitted,
    CategorizeAborted: _categorize_aborted,
    ViewDetails: _view_details,
    OpenInsert: _open_insert,
    InsertSubmitted: _insert_submitted,
    InsertAborted: _insert_aborted,
    Refresh: _refresh,
    MoveCursor: _move_cursor,
    SetFilter: _set_filter,
    ToggleHelp: _toggle_help,
    FetchSucceeded: _fetch_succeeded,
    FetchFailed: _fetch_failed,
    TransactionUpdated: _transaction_updated,
    TransactionUpdateFailed: _transaction_update_failed,
    TransactionInserted: _transaction_inserted,
    TransactionInsertFailed: _transaction_insert_failed,
    RecommendationReady: _recommendation_ready,
    RecommendationFailed: _recommendation_failed,
}


def transition(session: Session, event: Event) -> Result:
    """Apply one event to the session.

    Args:
        session: Current session.
        event: Event to apply.

    Returns:
        Tuple of (next_session, effects). Events that do not apply in the
        current state return the session unchanged with no effects.
    """
    handler = HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"unknown event: {event!r}")

    next_session, effects = handler(session, event)
    if next_session.state is not session.state:
        logger.debug(f"{type(event).__name__}: {session.state.value} -> {next_session.state.value}")
    return next_session, effects
