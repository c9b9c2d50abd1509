"""Console user interface."""

from .console_view import ConsoleView, STATE_TITLES

__all__ = ["ConsoleView", "STATE_TITLES"]
