"""Exception types for lunchdash."""


class LunchDashError(Exception):
    """Base class for all foreseeable lunchdash failures."""


class APIError(LunchDashError):
    """The Lunch Money API failed or returned a non-success status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthError(APIError):
    """The API rejected the token (HTTP 401/403)."""


class ValidationError(LunchDashError):
    """User input failed validation before any network call."""


class RecommendationError(LunchDashError):
    """The AI oracle failed or answered outside the response contract."""


class CurrencyMismatchError(LunchDashError):
    """Money arithmetic across two different currencies."""


class UnknownLoadKeyError(KeyError):
    """A load key that was never registered with the barrier."""
