"""Nested phase timing for long-running import steps."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator, List, Tuple

logger = logging.getLogger(__name__)


class Timer:
    def __init__(self, name: str):
        self.name = name
        self.timings: List[Tuple[str, float]] = []
        self._stack: List[Tuple[str, float]] = []
        self._t0 = time.perf_counter()

    def start(self, label: str) -> None:
        logger.info("%s%s...", "  " * len(self._stack), label)
        self._stack.append((label, time.perf_counter()))

    def stop(self, label: str) -> float:
        if not self._stack or self._stack[-1][0] != label:
            open_label = self._stack[-1][0] if self._stack else None
            raise ValueError(f"Timer {self.name!r}: stop({label!r}) but the open phase is {open_label!r}")
        _, t0 = self._stack.pop()
        elapsed = time.perf_counter() - t0
        self.timings.append((label, elapsed))
        logger.info("%s%s took %.2fs", "  " * len(self._stack), label, elapsed)
        return elapsed

    @contextmanager
    def phase(self, label: str) -> Iterator[None]:
        self.start(label)
        try:
            yield
        finally:
            self.stop(label)

    def done(self) -> float:
        total = time.perf_counter() - self._t0
        logger.info("%s finished in %.2fs", self.name, total)
        return total
