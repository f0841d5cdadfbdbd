"""Console progress bar for the startup sequence."""

import sys
from typing import Optional, Sequence, TextIO

from jokeapi.stages import Stage

DEBUGGER_MODULES = ("pydevd", "debugpy")


def in_debugger() -> bool:
    """Return True if an interactive debugger is attached to this process."""
    if sys.gettrace() is not None:
        return True
    return any(name in sys.modules for name in DEBUGGER_MODULES)


class ProgressReporter:
    """Monotonic counter bounded by ``total`` with a one-line console rendering."""

    BAR_WIDTH = 24

    def __init__(self, total: int, label: str = "", stream: Optional[TextIO] = None):
        if total < 1:
            raise ValueError("total must be positive")
        self.total = total
        self.current = 0
        self.label = label
        self.stream = stream if stream is not None else sys.stdout
        self._render()

    @property
    def done(self) -> bool:
        return self.current >= self.total

    def advance(self, label: str = "") -> int:
        """Advance by one unit (never past total) and redraw.

        Returns:
            The new counter value
        """
        if self.current < self.total:
            self.current += 1
        if label:
            self.label = label
        self._render()
        return self.current

    def _render(self) -> None:
        filled = int(self.BAR_WIDTH * self.current / self.total)
        bar = "#" * filled + "-" * (self.BAR_WIDTH - filled)
        self.stream.write(f"\r[{bar}] {self.current}/{self.total} {self.label}")
        if self.done:
            self.stream.write("\n")
        self.stream.flush()


def create_progress_reporter(
    stages: Sequence[Stage],
    disabled: bool = False,
    debugger_active: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> Optional[ProgressReporter]:
    """Build a reporter for ``stages`` unless suppressed.

    Either ``disabled`` (settings) or an attached debugger suppresses it.
    """
    if debugger_active is None:
        debugger_active = in_debugger()
    if disabled or debugger_active or not stages:
        return None
    return ProgressReporter(len(stages), f"Initializing {stages[0].name}", stream=stream)


def stage_label(stages: Sequence[Stage], index: int) -> str:
    """Label shown once the stage at ``index`` has settled."""
    if index + 1 < len(stages):
        return f"Initializing {stages[index + 1].name}"
    return f"Successfully initialized all {len(stages)} modules"
