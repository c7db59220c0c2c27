"""Configuration file management for lunchdash."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from lunchdash.theme import Theme, theme_from_config

DEFAULT_API_BASE_URL = "https://dev.lunchmoney.app/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_AI_MODEL = "claude-3-haiku-20240307"
DEFAULT_AI_TIMEOUT = 30.0

TOKEN_ENV = "LUNCHMONEY_API_TOKEN"
BASE_URL_ENV = "LUNCHMONEY_API_BASE_URL"
ANTHROPIC_KEY_ENV = "ANTHROPIC_API_KEY"


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "lunchdash" / "config.toml"


def default_config() -> dict[str, Any]:
    return {
        "token": "",
        "debug": False,
        "debits_as_negative": False,
        "hide_pending_transactions": False,
        "show_user_info": True,
        "api_base_url": DEFAULT_API_BASE_URL,
        "timeout": DEFAULT_TIMEOUT,
        "ai": {
            "anthropic_api_key": "",
            "model": DEFAULT_AI_MODEL,
            "timeout": DEFAULT_AI_TIMEOUT,
        },
        "colors": Theme().to_config(),
    }


def create_default_config(config_path: Path | None = None) -> None:
    """Write every setting with its default value.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    save_config(default_config(), config_path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: Mapping[str, Any], config_path: Path | None = None) -> None:
    """Write settings as TOML, readable only by the owner.

    A new file is created with 0o600 before any content is written; an
    existing one is narrowed to 0o600.

    Args:
        config: Settings to write, nested tables as nested mappings.
        config_path: Path to config file. If None, uses default location.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        tomli_w.dump(dict(config), f)
    os.chmod(path, 0o600)


def load_config_or_empty(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration, treating a missing file as empty."""
    try:
        return load_config(config_path)
    except FileNotFoundError:
        return {}


def mask_secret(value: str) -> str:
    """Hide all but the first four characters of a secret."""
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "*" * len(value)
    return value[:4] + "*" * (len(value) - 4)


@dataclass(frozen=True)
class Settings:
    """Immutable resolved settings, passed explicitly to every component."""

    token: str = ""
    debug: bool = False
    debits_as_negative: bool = False
    hide_pending_transactions: bool = False
    show_user_info: bool = True
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    anthropic_api_key: str = ""
    ai_model: str = DEFAULT_AI_MODEL
    ai_timeout: float = DEFAULT_AI_TIMEOUT
    config_path: Path | None = None
    theme: Theme = field(default_factory=Theme)

    @property
    def ai_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    def masked_token(self) -> str:
        return mask_secret(self.token)


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def resolve_settings(
    file_values: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Merge settings sources into one Settings object.

    Precedence is command-line flag, then environment variable, then config
    file, then default. Flags that were not given should be None in
    overrides (or absent).

    Args:
        file_values: Parsed config file contents.
        overrides: Values from command-line flags.
        environ: Environment mapping. If None, uses os.environ.

    Returns:
        Resolved Settings.

    Raises:
        ValueError: If a numeric setting is not a number.
    """
    file_values = file_values or {}
    overrides = overrides or {}
    environ = os.environ if environ is None else environ

    ai = file_values.get("ai") or {}
    if not isinstance(ai, Mapping):
        ai = {}

    def pick(key: str, env: str | None, file_value: Any, default: Any) -> Any:
        env_value = environ.get(env) if env else None
        value = _first(overrides.get(key), env_value, file_value)
        return default if value is None else value

    def flag(key: str, default: bool = False) -> bool:
        value = _first(overrides.get(key), file_values.get(key))
        return bool(value) if value is not None else default

    config_path = overrides.get("config_path")

    return Settings(
        token=str(pick("token", TOKEN_ENV, file_values.get("token"), "")),
        debug=flag("debug"),
        debits_as_negative=flag("debits_as_negative"),
        hide_pending_transactions=flag("hide_pending_transactions"),
        show_user_info=flag("show_user_info", default=True),
        api_base_url=str(pick("api_base_url", BASE_URL_ENV, file_values.get("api_base_url"), DEFAULT_API_BASE_URL)),
        timeout=float(pick("timeout", None, file_values.get("timeout"), DEFAULT_TIMEOUT)),
        anthropic_api_key=str(pick("anthropic_api_key", ANTHROPIC_KEY_ENV, ai.get("anthropic_api_key"), "")),
        ai_model=str(pick("ai_model", None, ai.get("model"), DEFAULT_AI_MODEL)),
        ai_timeout=float(pick("ai_timeout", None, ai.get("timeout"), DEFAULT_AI_TIMEOUT)),
        config_path=Path(config_path) if config_path else None,
        theme=theme_from_config(file_values.get("colors")),
    )
