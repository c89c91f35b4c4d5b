"""
Console status output for dataverse_auth.

Status lines are labelled like this:

    [INFO] Getting fresh Azure access token...
    [OK] Token acquired successfully
    [WARN] No authentication token available for dataverse request
    [ERROR] Failed to get token: Bearer [REDACTED] rejected

Every message is passed through ``sanitize()`` before it is printed or
logged, so callers can hand in raw exception text.
"""
import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .security.sanitizer import sanitize

console = Console(highlight=False)

_STYLES = {
    "INFO": "blue",
    "OK": "green",
    "WARN": "yellow",
    "ERROR": "red",
}


def _label(kind: str, title: Optional[str]) -> str:
    return f"[{kind}:{title}]" if title else f"[{kind}]"


def print_status(kind: str, message: str, title: Optional[str] = None) -> None:
    """Print a labelled, sanitized status line."""
    style = _STYLES.get(kind, "dim")
    label = escape(_label(kind, title))
    console.print(f"[{style}]{label}[/{style}] {escape(sanitize(message))}")


class ConsoleReporter:
    """
    Routes status messages to a logger and, when enabled, to the console.

    Example:
        reporter = ConsoleReporter(logging.getLogger(__name__), enabled=True)
        reporter.warning("setup_dataverse() has already been called")
    """

    def __init__(
        self,
        logger: logging.Logger,
        enabled: bool = True,
        title: Optional[str] = None,
    ) -> None:
        self._logger = logger
        self._enabled = enabled
        self._title = title

    @property
    def enabled(self) -> bool:
        return self._enabled

    def info(self, message: str) -> None:
        self._emit(logging.INFO, "INFO", message)

    def success(self, message: str) -> None:
        self._emit(logging.INFO, "OK", message)

    def warning(self, message: str) -> None:
        self._emit(logging.WARNING, "WARN", message)

    def error(self, message: str) -> None:
        self._emit(logging.ERROR, "ERROR", message)

    def _emit(self, level: int, kind: str, message: str) -> None:
        safe = sanitize(message)
        self._logger.log(level, safe)
        if self._enabled:
            print_status(kind, safe, self._title)
