"""
Coarse progress reporting: one notification per 10% step.
"""
from typing import Callable, Optional

from . import console

STEP = 10


def print_progress(percent: int, completed: int, total: int):
    console.log("Progress", f"{percent}% ({completed}/{total})")


class ProgressTracker:
    def __init__(self, notify: Optional[Callable[[int, int, int], None]] = print_progress):
        self.notify = notify
        self.completed = 0
        self.total = 0
        self.last_percent = 0

    def report(self, completed: int, total: int) -> Optional[int]:
        """
        Record progress and notify on a new positive multiple of 10 percent.

        Returns the percent that was emitted, or None.
        """
        if total < 1:
            raise ValueError(f"total must be positive, got {total}")
        self.completed = max(self.completed, completed)
        self.total = total
        percent = min(100, completed * 100 // total)
        if percent <= self.last_percent or percent % STEP:
            return None
        self.last_percent = percent
        if self.notify is not None:
            self.notify(percent, completed, total)
        return percent
