import threading
import time
from dataclasses import dataclass


@dataclass
class Totals:
    pages: int = 0
    errors: int = 0
    rejected: int = 0
    words: int = 0
    fetch_ms_sum: float = 0.0


class Metrics:
    def __init__(self):
        self._totals = Totals()
        self._lock = threading.Lock()
        self._start = time.time()

    def record_fetch(self, ok: bool, words: int, fetch_ms: float) -> None:
        with self._lock:
            self._totals.pages += 1
            self._totals.words += max(0, words)
            if not ok:
                self._totals.errors += 1
            self._totals.fetch_ms_sum += fetch_ms

    def record_rejected(self) -> None:
        with self._lock:
            self._totals.rejected += 1

    def snapshot(self) -> tuple[Totals, float]:
        with self._lock:
            t = Totals(
                pages=self._totals.pages,
                errors=self._totals.errors,
                rejected=self._totals.rejected,
                words=self._totals.words,
                fetch_ms_sum=self._totals.fetch_ms_sum,
            )
        elapsed = max(1e-6, time.time() - self._start)
        return t, elapsed


class StatsLogger(threading.Thread):
    daemon = True

    def __init__(self, metrics: Metrics, interval_s: float, log_fn):
        super().__init__(name="stats-logger")
        self._metrics = metrics
        self._interval = max(0.5, interval_s)
        self._log = log_fn
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.is_set():
            self._stop_event.wait(self._interval)
            if self._stop_event.is_set():
                break
            totals, elapsed = self._metrics.snapshot()
            pps = totals.pages / elapsed
            avg_ms = (totals.fetch_ms_sum / max(1, totals.pages))
            self._log(
                "Perf: pages=%d, errors=%d, rejected=%d, words=%d, avg_fetch_ms=%.1f, pages/sec=%.2f",
                totals.pages,
                totals.errors,
                totals.rejected,
                totals.words,
                avg_ms,
                pps,
            )

    def stop(self) -> None:
        self._stop_event.set()
