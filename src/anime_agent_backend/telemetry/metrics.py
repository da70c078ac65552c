"""Minimal metrics emitter backed by structured logging."""

from __future__ import annotations

import logging
import time
from collections import Counter
from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict


class MetricsEmitter:
    """Emit structured metrics via logging and keep process-local counters for /health."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("anime_agent.metrics")
        self._enabled = False
        self._counters: Counter = Counter()
        self._lock = Lock()

    def configure(self, *, enabled: bool) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def increment(self, name: str, value: float = 1.0, **labels: Any) -> None:
        if not self._enabled:
            return
        with self._lock:
            self._counters[name] += value
        payload = {"metric": name, "value": value, "labels": labels}
        self._logger.info("metric.increment", extra={"metric_payload": payload})

    @contextmanager
    def timer(self, name: str, **labels: Any):
        start = time.perf_counter()
        try:
            yield
        finally:
            if self._enabled:
                duration = time.perf_counter() - start
                payload = {"metric": name, "duration": duration, "labels": labels}
                self._logger.info("metric.timer", extra={"metric_payload": payload})

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


metrics = MetricsEmitter()

__all__ = ["metrics", "MetricsEmitter"]
