"""Dashboard colours, configurable through the [colors] config table."""

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from rich.color import Color, ColorParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Theme:
    """Colour for each role in the dashboard, as rich colour strings."""

    primary: str = "#ffd644"
    error: str = "#ff0000"
    success: str = "#22ba46"
    warning: str = "#e05951"
    muted: str = "#7f7d78"
    income: str = "#00ff00"
    expense: str = "#ff0000"
    border: str = "#7D56F4"
    background: str = "#7D56F4"
    text: str = "#FAFAFA"
    secondary_text: str = "#888888"

    def to_config(self) -> dict[str, str]:
        return asdict(self)


def parse_color(value: Any, default: str) -> str:
    """Turn a configured colour into something rich accepts.

    Hex strings and rich colour names pass through; a bare number is an ANSI
    palette index. Empty or unparseable values give the default.
    """
    if value is None:
        return default

    color = str(value).strip()
    if not color:
        return default
    if color.isdigit():
        color = f"color({color})"

    try:
        Color.parse(color)
    except ColorParseError:
        logger.warning(f"Ignoring invalid colour {value!r}, using {default}")
        return default
    return color


def theme_from_config(colors: Mapping[str, Any] | None) -> Theme:
    """Build a Theme from the [colors] table, defaulting missing keys."""
    if not isinstance(colors, Mapping):
        colors = {}

    defaults = Theme()
    return Theme(**{f.name: parse_color(colors.get(f.name), getattr(defaults, f.name)) for f in fields(Theme)})
