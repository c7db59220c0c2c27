"""Money values in integer minor units.

Amounts are stored as cents (minor units) to avoid floating point errors,
tagged with a lower-case ISO currency code. Arithmetic between two different
currencies raises CurrencyMismatchError instead of guessing a conversion.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from lunchdash.errors import CurrencyMismatchError

CURRENCY_SYMBOLS = {
    "usd": "$",
    "cad": "$",
    "aud": "$",
    "nzd": "$",
    "eur": "€",
    "gbp": "£",
    "jpy": "¥",
    "inr": "₹",
    "chf": "CHF ",
}

# Currencies without a minor unit
ZERO_DECIMAL_CURRENCIES = {"jpy", "krw"}


def _scale(currency: str) -> int:
    return 1 if currency in ZERO_DECIMAL_CURRENCIES else 100


@dataclass(frozen=True)
class Money:
    """Immutable amount of money in minor units."""

    minor: int
    currency: str = "usd"

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency.lower())

    @classmethod
    def from_decimal(cls, value: str | float | int | Decimal, currency: str) -> "Money":
        """Parse a major-unit amount such as "12.34" or 12.34.

        Args:
            value: Amount in major units.
            currency: ISO currency code (any case).

        Returns:
            Money rounded half-up to the currency's minor unit.

        Raises:
            ValueError: If the value is not a finite number.
        """
        try:
            amount = Decimal(str(value).strip().replace(",", ""))
        except InvalidOperation as e:
            raise ValueError(f"invalid amount: {value!r}") from e

        if not amount.is_finite():
            raise ValueError(f"invalid amount: {value!r}")

        code = currency.lower()
        minor = (amount * _scale(code)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(int(minor), code)

    def _check(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(f"cannot combine {self.currency} with {other.currency}")

    def add(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor + other.minor, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor - other.minor, self.currency)

    def negate(self) -> "Money":
        return Money(-self.minor, self.currency)

    def absolute(self) -> "Money":
        return Money(abs(self.minor), self.currency)

    def is_negative(self) -> bool:
        return self.minor < 0

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor) / _scale(self.currency)

    def to_decimal_string(self) -> str:
        """Plain amount string, e.g. "1234.56" (sent to the API)."""
        if _scale(self.currency) == 1:
            return str(self.minor)
        return f"{self.to_decimal():.2f}"

    def display(self) -> str:
        """Format for humans, e.g. "$1,234.56" or "-€5.00".

        Unknown currencies fall back to "1,234.56 XYZ".
        """
        major = abs(self.to_decimal())
        number = f"{major:,.0f}" if _scale(self.currency) == 1 else f"{major:,.2f}"
        sign = "-" if self.minor < 0 else ""

        symbol = CURRENCY_SYMBOLS.get(self.currency)
        if symbol is None:
            return f"{sign}{number} {self.currency.upper()}"
        return f"{sign}{symbol}{number}"

    def __str__(self) -> str:
        return self.display()
