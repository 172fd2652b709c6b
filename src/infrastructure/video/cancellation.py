"""Cooperative cancellation for long-running codec calls."""

from collections.abc import Callable
from pathlib import Path


class CancellationToken:
    """Flag checked periodically by codec calls.

    A token is cancelled once ``cancel()`` has been called or once its
    watched predicate returns True. Cancellation is sticky.
    """

    def __init__(self, predicate: Callable[[], bool] | None = None) -> None:
        self._predicate = predicate
        self._cancelled = False
        self.reason: str | None = None

    def watch_directory(self, directory: Path) -> None:
        """Start treating the absence of ``directory`` as cancellation."""
        self._predicate = lambda: not directory.is_dir()

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation."""
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def is_cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self._predicate is not None and self._predicate():
            self.cancel("directory removed")
        return self._cancelled
