import logging
import threading
from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics


logger = logging.getLogger(__name__)


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry | None = None) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry or CollectorRegistry()
        self._server = None
        self._updater_thread: threading.Thread | None = None
        self._http_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.pages_total = Counter(
            'wordcrawl_pages_total', 'Total number of documents fetched', registry=self.registry
        )
        self.errors_total = Counter(
            'wordcrawl_fetch_errors_total', 'Total number of failed fetches', registry=self.registry
        )
        self.rejected_total = Counter(
            'wordcrawl_rejected_total', 'Crawl tasks that did no work', registry=self.registry
        )
        self.words_total = Counter(
            'wordcrawl_words_total', 'Total number of words merged', registry=self.registry
        )
        self.pages_per_second = Gauge(
            'wordcrawl_pages_per_second', 'Current crawl rate in pages per second', registry=self.registry
        )
        self.avg_fetch_duration_seconds = Gauge(
            'wordcrawl_avg_fetch_duration_seconds', 'Average fetch duration in seconds', registry=self.registry
        )

        self._last_pages = 0
        self._last_errors = 0
        self._last_rejected = 0
        self._last_words = 0

    def start(self) -> None:
        self._server, self._http_thread = start_http_server(self.port, registry=self.registry)
        self.port = self._server.server_port
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._updater_thread = threading.Thread(
            target=self._update_metrics_loop,
            name="prometheus-updater",
            daemon=True
        )
        self._updater_thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self.update()
            self._stop_event.wait(5.0)

    def update(self) -> None:
        totals, elapsed = self.metrics.snapshot()

        for counter, current, attr in (
            (self.pages_total, totals.pages, "_last_pages"),
            (self.errors_total, totals.errors, "_last_errors"),
            (self.rejected_total, totals.rejected, "_last_rejected"),
            (self.words_total, totals.words, "_last_words"),
        ):
            delta = current - getattr(self, attr)
            if delta > 0:
                counter.inc(delta)
            setattr(self, attr, current)

        if elapsed > 0:
            self.pages_per_second.set(totals.pages / elapsed)
        if totals.pages > 0:
            self.avg_fetch_duration_seconds.set(totals.fetch_ms_sum / totals.pages / 1000.0)

    def stop(self) -> None:
        self._stop_event.set()
        if self._updater_thread:
            self._updater_thread.join(timeout=2.0)
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._http_thread:
            self._http_thread.join(timeout=2.0)
        self.update()
