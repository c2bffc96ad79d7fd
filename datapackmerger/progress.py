from __future__ import annotations

import threading
from typing import Callable, Optional

from .logging_utils import log_info

ProgressCallback = Callable[[int], None]


class ProgressCounter:
    """Thread-safe progress sink.

    Workers call the counter with the number of units they just finished.
    When ``report_every`` is set, a log line is printed each time the running
    total crosses another multiple of it.
    """

    def __init__(self, label: str = "progress", total: int | None = None,
                 report_every: int = 0) -> None:
        self.label = label
        self.total = total
        self.report_every = report_every
        self._count = 0
        self._calls = 0
        self._lock = threading.Lock()

    def __call__(self, units: int) -> None:
        with self._lock:
            before = self._count
            self._count += units
            self._calls += 1
            current = self._count
        if self.report_every and current // self.report_every > before // self.report_every:
            if self.total:
                log_info(f"{self.label}: {current}/{self.total}", indent=2)
            else:
                log_info(f"{self.label}: {current}", indent=2)

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def calls(self) -> int:
        with self._lock:
            return self._calls


def notify(progress: Optional[ProgressCallback], units: int) -> None:
    if progress is not None:
        progress(units)
