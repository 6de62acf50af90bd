"""Phase-gated plan mode for interactive coding assistants."""

__version__ = "0.1.0"
