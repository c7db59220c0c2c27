"""Domain models and pure logic for lunchdash.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Immutable values shared freely with the dashboard and commands
"""

from lunchdash.domain.models import CategoryName
from lunchdash.domain.money import Money
from lunchdash.domain.period import Period, PeriodType

__all__ = ["CategoryName", "Money", "Period", "PeriodType"]
