"""Asyncio runner for the interactive dashboard.

One queue of events is consumed strictly in arrival order. Effects returned
by the state machine run as tasks that post their results back onto the
queue, so every session change happens on the event loop thread.
"""

import asyncio
import logging
import os
import sys
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import typer
from rich.console import Console
from rich.live import Live
from rich.markup import escape

from lunchdash.config import Settings
from lunchdash.dashboard.keys import Quit, key_to_event
from lunchdash.dashboard.machine import transition
from lunchdash.dashboard.state import (
    Effect,
    Event,
    Fetch,
    FetchFailed,
    FetchSucceeded,
    InsertAborted,
    InsertSubmitted,
    InsertTransaction,
    PromptInsertForm,
    RecommendationFailed,
    RecommendationReady,
    RequestRecommendation,
    Session,
    TransactionInserted,
    TransactionInsertFailed,
    TransactionUpdated,
    TransactionUpdateFailed,
    UpdateCategory,
    initial_session,
    start,
)
from lunchdash.dashboard.views import render
from lunchdash.domain.drafts import InsertRequest, TransactionDraft, build_draft
from lunchdash.domain.loading import LoadKey
from lunchdash.domain.models import CLEARED_STATUS, UNCLEARED_STATUS
from lunchdash.domain.period import Period
from lunchdash.errors import LunchDashError, ValidationError
from lunchdash.lunchmoney import LunchMoneyClient, fetch_accounts
from lunchdash.recommender import Recommender

logger = logging.getLogger(__name__)

# Failures a fetch can report instead of crashing the loop
FETCH_ERRORS = (LunchDashError, KeyError, TypeError, ValueError)

ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
    "\x1b[15~": "f5",
}

CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x03": "ctrl+c",
    "\x1b": "esc",
}


def decode_keys(data: str) -> list[str]:
    """Split raw terminal input into key names."""
    keys = []
    i = 0
    while i < len(data):
        for sequence, name in ESCAPE_SEQUENCES.items():
            if data.startswith(sequence, i):
                keys.append(name)
                i += len(sequence)
                break
        else:
            char = data[i]
            keys.append(CONTROL_KEYS.get(char, char))
            i += 1
    return keys


@contextmanager
def cbreak_terminal(fd: int) -> Iterator[None]:
    """Deliver key presses unbuffered without echo, restoring on exit."""
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


@dataclass(frozen=True)
class KeyPress:
    key: str


def prompt_insert_form(session: Session, console: Console) -> TransactionDraft | None:
    """Ask for a new transaction on the plain terminal.

    Re-prompts until the input validates. An empty payee or Ctrl-C aborts.

    Returns:
        A validated draft, or None when aborted.
    """
    console.print("\n[bold]Insert Transaction[/bold] [dim](leave payee empty to cancel)[/dim]")
    for category in session.category_choices():
        console.print(f"  [dim]{category.id:>8}[/dim] {escape(category.name)}")

    today = datetime.now().strftime("%Y-%m-%d")

    try:
        while True:
            payee = typer.prompt("Payee", default="", show_default=False)
            if not payee.strip():
                return None

            try:
                return build_draft(
                    payee=payee,
                    amount=typer.prompt("Amount (e.g. 10.00)"),
                    date=typer.prompt("Date (YYYY-MM-DD)", default=today),
                    category_id=typer.prompt("Category ID (0 for none)", default=0, type=int),
                    status=typer.prompt(f"Status ({CLEARED_STATUS}/{UNCLEARED_STATUS})", default=UNCLEARED_STATUS),
                    notes=typer.prompt("Notes", default="", show_default=False),
                    currency=session.snapshot.currency,
                )
            except ValidationError as e:
                console.print(f"[red]{escape(str(e))}[/red]")
    except typer.Abort:
        return None


class Dashboard:
    """Runs the session loop against the Lunch Money API."""

    def __init__(
        self,
        client: LunchMoneyClient,
        settings: Settings,
        recommender: Recommender | None = None,
        console: Console | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.recommender = recommender or Recommender(None)
        self.console = console or Console()
        self.queue: asyncio.Queue[Event | KeyPress] = asyncio.Queue()
        self.tasks: set[asyncio.Task[Any]] = set()
        self.session = initial_session(datetime.now(), settings)
        self.live: Live | None = None

    def post(self, item: Event | KeyPress) -> None:
        self.queue.put_nowait(item)

    # Fetching

    async def load(self, key: LoadKey, period: Period) -> Any:
        """Fetch the data for one key, each API call in a worker thread."""
        client = self.client

        if key is LoadKey.CATEGORIES:
            return await asyncio.to_thread(client.get_categories)
        if key is LoadKey.ACCOUNTS:
            return await fetch_accounts(client)
        if key is LoadKey.TRANSACTIONS:
            return await asyncio.to_thread(
                client.get_transactions,
                period.start_date(),
                period.end_date(),
                self.settings.debits_as_negative,
            )
        if key is LoadKey.TAGS:
            return await asyncio.to_thread(client.get_tags)
        if key is LoadKey.USER:
            return await asyncio.to_thread(client.get_user)
        if key is LoadKey.BUDGETS:
            return await asyncio.to_thread(client.get_budgets, period.start_date(), period.end_date())
        if key is LoadKey.RECURRING:
            return await asyncio.to_thread(client.get_recurring_expenses)
        raise ValueError(f"unknown load key: {key}")

    async def run_fetch(self, effect: Fetch) -> None:
        logger.debug(f"Fetching {effect.key.value} for {effect.period} (generation {effect.generation})")
        try:
            payload = await self.load(effect.key, effect.period)
        except FETCH_ERRORS as e:
            self.post(FetchFailed(effect.key, e, effect.generation))
            return
        logger.debug(f"Fetched {effect.key.value} (generation {effect.generation})")
        self.post(FetchSucceeded(effect.key, payload, effect.generation))

    # Writes

    async def run_update(self, effect: UpdateCategory) -> None:
        try:
            ok = await asyncio.to_thread(
                self.client.update_transaction,
                effect.transaction_id,
                category_id=effect.category_id,
                status=CLEARED_STATUS,
            )
        except LunchDashError as e:
            self.post(TransactionUpdateFailed(effect.transaction_id, e))
            return
        self.post(TransactionUpdated(effect.transaction_id, ok))

    async def run_insert(self, effect: InsertTransaction) -> None:
        request = InsertRequest(
            transactions=(effect.draft,),
            debit_as_negative=self.settings.debits_as_negative,
        )
        try:
            ids = await asyncio.to_thread(self.client.insert_transactions, request)
        except LunchDashError as e:
            self.post(TransactionInsertFailed(e))
            return
        self.post(TransactionInserted(tuple(ids)))

    async def run_recommendation(self, effect: RequestRecommendation) -> None:
        transaction_id = effect.transaction.id
        try:
            recommendation = await self.recommender.recommend(
                effect.transaction,
                effect.categories,
                timeout=self.settings.ai_timeout,
            )
        except LunchDashError as e:
            self.post(RecommendationFailed(transaction_id, e))
            return
        self.post(RecommendationReady(transaction_id, recommendation))

    async def run_insert_form(self) -> None:
        """Suspend the live display and key reader while prompting."""
        fd = sys.stdin.fileno()
        loop = asyncio.get_running_loop()
        loop.remove_reader(fd)
        if self.live is not None:
            self.live.stop()

        saved = termios.tcgetattr(fd)
        try:
            # Line-buffered input with echo for the prompts
            restored = termios.tcgetattr(fd)
            restored[3] |= termios.ICANON | termios.ECHO
            termios.tcsetattr(fd, termios.TCSADRAIN, restored)
            draft = await asyncio.to_thread(prompt_insert_form, self.session, self.console)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
            if self.live is not None:
                self.live.start()
            loop.add_reader(fd, self.read_keys, fd)

        self.post(InsertAborted() if draft is None else InsertSubmitted(draft))

    def spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    async def execute(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Fetch):
                self.spawn(self.run_fetch(effect))
            elif isinstance(effect, UpdateCategory):
                self.spawn(self.run_update(effect))
            elif isinstance(effect, InsertTransaction):
                self.spawn(self.run_insert(effect))
            elif isinstance(effect, RequestRecommendation):
                self.spawn(self.run_recommendation(effect))
            elif isinstance(effect, PromptInsertForm):
                await self.run_insert_form()

    # Input

    def read_keys(self, fd: int) -> None:
        data = os.read(fd, 64).decode("utf-8", errors="ignore")
        for key in decode_keys(data):
            self.post(KeyPress(key))

    def refresh(self) -> None:
        if self.live is not None:
            self.live.update(render(self.session, self.settings), refresh=True)

    async def handle(self, item: Event | KeyPress) -> bool:
        """Apply one queued item. Returns False when the user quits."""
        if isinstance(item, KeyPress):
            event = key_to_event(item.key, self.session)
            if isinstance(event, Quit):
                return False
            if event is None:
                return True
        else:
            event = item

        self.session, effects = transition(self.session, event)
        self.refresh()
        await self.execute(effects)
        return True

    async def run(self) -> None:
        self.session, effects = start(self.session)

        fd = sys.stdin.fileno()
        loop = asyncio.get_running_loop()

        with cbreak_terminal(fd), Live(
            render(self.session, self.settings),
            console=self.console,
            screen=True,
            auto_refresh=True,
            refresh_per_second=8,
        ) as live:
            self.live = live
            loop.add_reader(fd, self.read_keys, fd)
            try:
                await self.execute(effects)
                while await self.handle(await self.queue.get()):
                    pass
            finally:
                loop.remove_reader(fd)
                for task in self.tasks:
                    task.cancel()
                self.live = None


def run_dashboard(client: LunchMoneyClient, settings: Settings, recommender: Recommender | None = None) -> None:
    asyncio.run(Dashboard(client, settings, recommender).run())
