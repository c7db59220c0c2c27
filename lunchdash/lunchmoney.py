"""Lunch Money API interactions."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import requests

from lunchdash.config import DEFAULT_API_BASE_URL, DEFAULT_TIMEOUT
from lunchdash.domain.drafts import InsertRequest
from lunchdash.domain.models import (
    Asset,
    Budget,
    Category,
    PlaidAccount,
    RecurringExpense,
    Tag,
    Transaction,
    User,
    parse_asset,
    parse_budget,
    parse_category,
    parse_plaid_account,
    parse_recurring_expense,
    parse_tag,
    parse_transaction,
    parse_user,
)
from lunchdash.errors import APIError, AuthError

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES = (401, 403)

# What a parser raises on an item of the wrong shape
MALFORMED_ERRORS = (AttributeError, KeyError, TypeError, ValueError)

T = TypeVar("T")


def log_response(response: requests.Response, *args: Any, **kwargs: Any) -> None:
    """Response hook logging each completed request."""
    request = response.request
    logger.debug(f"HTTP Request {request.method} {request.url}")
    logger.debug(f"HTTP Response {response.status_code} in {response.elapsed.total_seconds():.3f}s")


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(body, dict):
        for key in ("error", "message", "name"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else "; ".join(str(v) for v in value)
    return str(body)


def _parse(parse: Callable[[Any], T], raw: Any, path: str) -> T:
    try:
        return parse(raw)
    except MALFORMED_ERRORS as e:
        logger.error(f"Malformed item from {path}: {raw!r}")
        raise APIError(f"malformed response from {path}: {e}") from e


def _parse_all(parse: Callable[[Any], T], items: list[Any], path: str) -> list[T]:
    return [_parse(parse, item, path) for item in items]


class LunchMoneyClient:
    """Thin wrapper over the Lunch Money v1 REST API.

    Every call is blocking and bounded by the per-call timeout. Run calls
    with asyncio.to_thread when inside an event loop.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
        )
        self.session.hooks.setdefault("response", []).append(log_response)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and decode its JSON body.

        Raises:
            AuthError: If the API rejects the token (401/403).
            APIError: On transport failure or any other non-2xx response.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"HTTP Request failed: {method} {url}: {e}")
            raise APIError(f"request to {path} failed: {e}") from e

        if response.status_code in AUTH_FAILURE_STATUSES:
            logger.error(f"HTTP {response.status_code} from {path}")
            raise AuthError(_error_message(response) or "unauthorized", status=response.status_code)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"HTTP {response.status_code} from {path}")
            raise APIError(_error_message(response) or str(e), status=response.status_code) from e

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"invalid JSON from {path}", status=response.status_code) from e

    def _get_list(self, path: str, key: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        data = self._request("GET", path, params=params)
        if isinstance(data, dict):
            data = data.get(key)
        if data is None:
            return []
        if not isinstance(data, list):
            raise APIError(f"unexpected response shape from {path}")
        return data

    def get_categories(self) -> list[Category]:
        return _parse_all(parse_category, self._get_list("/categories", "categories"), "/categories")

    def get_assets(self) -> list[Asset]:
        return _parse_all(parse_asset, self._get_list("/assets", "assets"), "/assets")

    def get_plaid_accounts(self) -> list[PlaidAccount]:
        return _parse_all(parse_plaid_account, self._get_list("/plaid_accounts", "plaid_accounts"), "/plaid_accounts")

    def get_tags(self) -> list[Tag]:
        return _parse_all(parse_tag, self._get_list("/tags", "tags"), "/tags")

    def get_transactions(self, start_date: str, end_date: str, debit_as_negative: bool = False) -> list[Transaction]:
        """Fetch transactions in an inclusive date range.

        Args:
            start_date: First day, YYYY-MM-DD.
            end_date: Last day, YYYY-MM-DD.
            debit_as_negative: Report debits as negative amounts.

        Returns:
            Transactions in the order the API returns them (oldest first).
        """
        params = {
            "start_date": start_date,
            "end_date": end_date,
            "debit_as_negative": str(debit_as_negative).lower(),
        }
        return _parse_all(parse_transaction, self._get_list("/transactions", "transactions", params), "/transactions")

    def get_budgets(self, start_date: str, end_date: str) -> list[Budget]:
        params = {"start_date": start_date, "end_date": end_date}
        return _parse_all(parse_budget, self._get_list("/budgets", "budgets", params), "/budgets")

    def get_recurring_expenses(self) -> list[RecurringExpense]:
        items = self._get_list("/recurring_expenses", "recurring_expenses")
        return _parse_all(parse_recurring_expense, items, "/recurring_expenses")

    def get_user(self) -> User:
        return _parse(parse_user, self._request("GET", "/me"), "/me")

    def update_transaction(
        self,
        transaction_id: int,
        category_id: int | None = None,
        status: str | None = None,
    ) -> bool:
        """Change a transaction's category and/or status.

        Returns:
            The API's "updated" acknowledgment.
        """
        changes: dict[str, Any] = {}
        if category_id is not None:
            changes["category_id"] = category_id
        if status is not None:
            changes["status"] = status

        data = self._request("PUT", f"/transactions/{transaction_id}", body={"transaction": changes})
        return bool(data.get("updated", False)) if isinstance(data, dict) else False

    def insert_transactions(self, request: InsertRequest) -> list[int]:
        """Insert transactions and return their new IDs."""
        data = self._request("POST", "/transactions", body=request.to_payload())
        if not isinstance(data, dict):
            raise APIError("unexpected response shape from /transactions")
        if data.get("error"):
            error = data["error"]
            raise APIError(error if isinstance(error, str) else "; ".join(str(e) for e in error))
        ids = data.get("ids") or []
        if not isinstance(ids, list):
            raise APIError("unexpected response shape from /transactions")
        return _parse_all(int, ids, "/transactions")


async def fetch_accounts(client: LunchMoneyClient) -> tuple[list[Asset], list[PlaidAccount]]:
    """Fetch manual assets and linked accounts concurrently.

    Both must succeed; the first failure fails the pair.
    """
    assets, plaid_accounts = await asyncio.gather(
        asyncio.to_thread(client.get_assets),
        asyncio.to_thread(client.get_plaid_accounts),
    )
    return assets, plaid_accounts
