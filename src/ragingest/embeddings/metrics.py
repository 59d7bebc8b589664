"""Observation hooks for the embedding pipeline."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod


class PipelineMetrics(ABC):
    """Called from pipeline threads; implementations must be thread-safe."""

    @abstractmethod
    def observe_queue_depth(self, depth: int) -> None:
        """Feed queue depth right after a chunk was admitted."""

    @abstractmethod
    def record_embedding(self, duration: float, ok: bool) -> None:
        """Latency in seconds and outcome of one embedding attempt."""


class InMemoryMetrics(PipelineMetrics):
    """Collects observations in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self.queue_depths: list[int] = []
        self.latencies: list[float] = []
        self.successes = 0
        self.failures = 0

    def observe_queue_depth(self, depth: int) -> None:
        with self._lock:
            self.queue_depths.append(depth)

    def record_embedding(self, duration: float, ok: bool) -> None:
        with self._lock:
            self.latencies.append(duration)
            if ok:
                self.successes += 1
            else:
                self.failures += 1

    @property
    def attempts(self) -> int:
        return self.successes + self.failures
