"""Logging utilities for Officesim simulations.

Provides color-coded console output that distinguishes deterministic work
(need decay, action ticks) from oracle round-trips and failures.

There is no global logger: a ``SimulationLogger`` is created by the caller and
handed to every collaborator that reports something.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Optional

from .config import Config


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic operations (needs, actions)
    YELLOW = "\033[93m"    # Oracle / LLM calls
    RED = "\033[91m"       # Errors and rejected proposals
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"

# Levels at which only errors are printed
QUIET_LOG_LEVELS = ("WARNING", "ERROR", "CRITICAL")


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if OFFICESIM_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("OFFICESIM_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


class SimulationLogger:
    """Console logger injected into the simulation and its collaborators.

    Each method prefixes the message with its operation tag and prints it in
    the matching color. ``quiet=True`` suppresses everything except errors.
    When ``quiet`` is not given it follows ``Config.LOG_LEVEL``: WARNING and
    above are quiet, DEBUG and INFO are not.
    """

    def __init__(self, *, quiet: Optional[bool] = None) -> None:
        if quiet is None:
            quiet = Config.LOG_LEVEL.upper() in QUIET_LOG_LEVELS
        self.quiet = quiet

    def _emit(self, tag: str, message: str, color: Color) -> None:
        print(colored(f"  {tag} {message}", color))

    def deterministic(self, message: str) -> None:
        """Log a deterministic operation (blue)."""
        if not self.quiet:
            self._emit(LOG_TAG_DETERMINISTIC, message, Color.BLUE)

    def llm(self, message: str) -> None:
        """Log an oracle/LLM operation (yellow)."""
        if not self.quiet:
            self._emit(LOG_TAG_LLM, message, Color.YELLOW)

    def error(self, message: str) -> None:
        """Log an error or rejected input (red). Never suppressed."""
        self._emit(LOG_TAG_ERROR, message, Color.RED)

    def success(self, message: str) -> None:
        """Log a success (green)."""
        if not self.quiet:
            self._emit(LOG_TAG_SUCCESS, message, Color.GREEN)

    def info(self, message: str) -> None:
        """Log metadata/info (cyan)."""
        if not self.quiet:
            self._emit(LOG_TAG_INFO, message, Color.CYAN)
