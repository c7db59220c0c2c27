"""Tests for lunchdash.config."""

import os
from pathlib import Path

import pytest

from lunchdash.config import (
    DEFAULT_AI_MODEL,
    DEFAULT_API_BASE_URL,
    create_default_config,
    get_config_path,
    load_config,
    load_config_or_empty,
    mask_secret,
    resolve_settings,
    save_config,
)
from lunchdash.theme import Theme


class TestConfigFile:
    """Tests for reading and writing the TOML file."""

    def test_create_default_config(self, tmp_path: Path) -> None:
        """Should write defaults readable only by the owner."""
        path = tmp_path / "sub" / "config.toml"
        create_default_config(path)
        assert path.exists()
        assert os.stat(path).st_mode & 0o777 == 0o600
        config = load_config(path)
        assert config["token"] == ""
        assert config["ai"]["model"] == DEFAULT_AI_MODEL
        assert config["show_user_info"] is True
        assert config["colors"]["primary"] == Theme().primary

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Should round-trip a config dictionary."""
        path = tmp_path / "config.toml"
        save_config({"token": "abc", "debug": True}, path)
        assert load_config(path) == {"token": "abc", "debug": True}

    def test_save_tightens_existing_file(self, tmp_path: Path) -> None:
        """Should leave an existing world-readable file owner-only."""
        path = tmp_path / "config.toml"
        path.write_text("token = \"old\"\n")
        os.chmod(path, 0o644)
        save_config({"token": "new"}, path)
        assert os.stat(path).st_mode & 0o777 == 0o600
        assert load_config(path) == {"token": "new"}

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Should treat a missing config as no settings."""
        assert load_config_or_empty(tmp_path / "missing.toml") == {}

    def test_xdg_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should honour XDG_CONFIG_HOME."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_config_path() == tmp_path / "lunchdash" / "config.toml"


class TestResolveSettings:
    """Tests for settings precedence."""

    def test_defaults(self) -> None:
        """Should fall back to built-in defaults."""
        settings = resolve_settings({}, {}, environ={})
        assert settings.token == ""
        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert not settings.debug
        assert not settings.ai_enabled

    def test_flag_beats_env_beats_file(self) -> None:
        """Should prefer the flag, then the environment, then the file."""
        file_values = {"token": "from-file"}
        environ = {"LUNCHMONEY_API_TOKEN": "from-env"}
        assert resolve_settings(file_values, {}, environ).token == "from-env"
        assert resolve_settings(file_values, {"token": "from-flag"}, environ).token == "from-flag"
        assert resolve_settings(file_values, {}, {}).token == "from-file"

    def test_empty_values_do_not_override(self) -> None:
        """Should skip empty strings and None at every level."""
        settings = resolve_settings({"token": "from-file"}, {"token": None}, {"LUNCHMONEY_API_TOKEN": ""})
        assert settings.token == "from-file"

    def test_boolean_flags(self) -> None:
        """Should read switches from the flag or the file."""
        assert resolve_settings({"debits_as_negative": True}, {}, {}).debits_as_negative
        assert resolve_settings({}, {"hide_pending_transactions": True}, {}).hide_pending_transactions

    def test_show_user_info(self) -> None:
        """Should default to on and accept an explicit off from flag or file."""
        assert resolve_settings({}, {}, {}).show_user_info
        assert not resolve_settings({"show_user_info": False}, {}, {}).show_user_info
        assert not resolve_settings({"show_user_info": True}, {"show_user_info": False}, {}).show_user_info
        assert resolve_settings({"show_user_info": False}, {"show_user_info": True}, {}).show_user_info

    def test_colors_table(self) -> None:
        """Should build the theme from the colors table."""
        settings = resolve_settings({"colors": {"income": "#00cc00", "expense": "160"}}, {}, {})
        assert settings.theme.income == "#00cc00"
        assert settings.theme.expense == "color(160)"
        assert settings.theme.border == Theme().border

    def test_ai_section(self) -> None:
        """Should read the nested ai table."""
        settings = resolve_settings({"ai": {"anthropic_api_key": "sk", "model": "m", "timeout": 5}}, {}, {})
        assert settings.ai_enabled
        assert settings.ai_model == "m"
        assert settings.ai_timeout == 5.0

    def test_anthropic_key_from_env(self) -> None:
        """Should read the Anthropic key from the environment."""
        settings = resolve_settings({}, {}, {"ANTHROPIC_API_KEY": "sk-env"})
        assert settings.anthropic_api_key == "sk-env"

    def test_bad_number(self) -> None:
        """Should raise ValueError for a non-numeric timeout."""
        with pytest.raises(ValueError):
            resolve_settings({"timeout": "soon"}, {}, {})


class TestMasking:
    """Tests for secret masking."""

    def test_mask_secret(self) -> None:
        """Should keep only the first four characters."""
        assert mask_secret("abcdefgh") == "abcd****"
        assert mask_secret("abc") == "***"
        assert mask_secret("") == "(not set)"

    def test_settings_masked_token(self) -> None:
        """Should never expose the full token."""
        settings = resolve_settings({"token": "supersecret"}, {}, {})
        assert settings.masked_token() == "supe*******"
