"""Terminal dashboard and CLI for the Lunch Money API."""

__version__ = "0.1.0"
