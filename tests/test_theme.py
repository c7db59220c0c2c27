"""Tests for lunchdash.theme."""

import pytest

from lunchdash.theme import Theme, parse_color, theme_from_config


class TestParseColor:
    """Tests for parse_color."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("#ff0000", "#ff0000"),
            ("21", "color(21)"),
            ("magenta", "magenta"),
            ("", "#000000"),
            ("   ", "#000000"),
            (None, "#000000"),
            ("not-a-colour", "#000000"),
            ("300", "#000000"),
        ],
    )
    def test_values(self, value: str | None, expected: str) -> None:
        """Should accept hex, names and ANSI numbers, defaulting the rest."""
        assert parse_color(value, "#000000") == expected


class TestThemeFromConfig:
    """Tests for building a Theme from the [colors] table."""

    def test_defaults(self) -> None:
        """Should use the built-in palette without a table."""
        assert theme_from_config(None) == Theme()
        assert theme_from_config("red") == Theme()

    def test_overrides_per_key(self) -> None:
        """Should replace only the configured roles."""
        theme = theme_from_config({"primary": "#ff0000", "error": "21", "secondary_text": "245"})
        assert theme.primary == "#ff0000"
        assert theme.error == "color(21)"
        assert theme.secondary_text == "color(245)"
        assert theme.success == Theme().success

    def test_unknown_keys_ignored(self) -> None:
        """Should ignore keys that are not colour roles."""
        assert theme_from_config({"sparkle": "#ffffff"}) == Theme()

    def test_to_config_round_trip(self) -> None:
        """Should write every role so the file documents the palette."""
        assert theme_from_config(Theme().to_config()) == Theme()
