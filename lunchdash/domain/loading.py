"""Join barrier over named asynchronous fetches."""

from collections.abc import Iterable
from enum import Enum

from lunchdash.errors import UnknownLoadKeyError


class LoadKey(str, Enum):
    """Closed set of fetch operations the dashboard can wait on."""

    CATEGORIES = "categories"
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    TAGS = "tags"
    USER = "user"
    BUDGETS = "budgets"
    RECURRING = "recurring"

    @classmethod
    def period_scoped(cls) -> frozenset["LoadKey"]:
        """Keys whose data depends on the active period."""
        return frozenset({cls.TRANSACTIONS, cls.BUDGETS})


# Keys that gate the loading screen; budgets and recurring load in place
BARRIER_KEYS = (
    LoadKey.CATEGORIES,
    LoadKey.ACCOUNTS,
    LoadKey.TRANSACTIONS,
    LoadKey.USER,
    LoadKey.TAGS,
)


class LoadJoin:
    """Tracks completion of a fixed set of load keys.

    The key set is fixed at construction. Marking or unmarking a key outside
    it raises UnknownLoadKeyError rather than silently creating a key that
    nothing will ever complete.
    """

    def __init__(self, keys: Iterable[LoadKey]) -> None:
        self._done: dict[LoadKey, bool] = {LoadKey(k): False for k in keys}

    @property
    def keys(self) -> tuple[LoadKey, ...]:
        return tuple(self._done)

    def __contains__(self, key: object) -> bool:
        return key in self._done

    def _require(self, key: LoadKey) -> LoadKey:
        if key not in self._done:
            raise UnknownLoadKeyError(key)
        return LoadKey(key)

    def mark(self, key: LoadKey) -> None:
        self._done[self._require(key)] = True

    def unmark(self, key: LoadKey) -> None:
        self._done[self._require(key)] = False

    def is_marked(self, key: LoadKey) -> bool:
        return self._done[self._require(key)]

    def is_satisfied(self) -> tuple[bool, LoadKey | None]:
        """Report whether every key is complete.

        Returns:
            Tuple of (all_done, first_pending_key). The pending key is the
            first incomplete one in registration order, or None.
        """
        for key, done in self._done.items():
            if not done:
                return False, key
        return True, None

    def pending(self) -> list[LoadKey]:
        return [key for key, done in self._done.items() if not done]

    def copy(self) -> "LoadJoin":
        clone = LoadJoin(())
        clone._done = dict(self._done)
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoadJoin):
            return NotImplemented
        return self._done == other._done

    def __repr__(self) -> str:
        state = ", ".join(f"{k.value}={v}" for k, v in self._done.items())
        return f"LoadJoin({state})"
