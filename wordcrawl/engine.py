import logging
import time
from typing import Callable, List, Optional, Sequence

from .aggregator import WordTally, top_k
from .claims import ClaimRegistry
from .config import CrawlConfig, ignore_predicate, validate_start_urls
from .metrics import Metrics, StatsLogger
from .net import HttpClient
from .parsing import HtmlPageFetcher, PageParser
from .scheduler import ForkJoinPool, effective_parallelism, max_parallelism
from .task import CrawlContext, CrawlTask
from .timegate import TimeGate
from .types import CrawlResult, DocumentFetcher


class Crawler:
    def __init__(
        self,
        config: CrawlConfig,
        fetcher: DocumentFetcher | None = None,
        ignore: Callable[[str], bool] | None = None,
        now: Callable[[], float] | None = None,
        metrics: Metrics | None = None,
    ):
        config.validate()
        self.config = config
        self.parallelism = effective_parallelism(config.parallelism)
        self.fetcher = fetcher or HtmlPageFetcher(
            HttpClient(config.user_agent, config.request_timeout, self.parallelism, config.max_connections),
            PageParser(config.ignored_words),
        )
        self.is_ignored = ignore or ignore_predicate(config.ignored_urls)
        self._now = now or time.monotonic
        self.metrics = metrics or Metrics()

    @staticmethod
    def max_parallelism() -> int:
        return max_parallelism()

    def crawl(self, start_urls: Optional[Sequence[str]] = None) -> CrawlResult:
        requested = self.config.start_urls if start_urls is None else start_urls
        validate_start_urls(requested)
        seeds: List[str] = list(requested)
        gate = TimeGate.start(self.config.timeout_seconds, now=self._now)
        registry = ClaimRegistry()
        tally = WordTally()

        logging.info(
            "Starting crawl: %d start URLs, max depth %d, budget %.1fs, parallelism %d",
            len(seeds),
            self.config.max_depth,
            self.config.timeout_seconds,
            self.parallelism,
        )
        stats_thread: Optional[StatsLogger] = None
        if self.config.metrics_interval and self.config.metrics_interval > 0:
            stats_thread = StatsLogger(self.metrics, self.config.metrics_interval, logging.info)
            stats_thread.start()
        t0 = time.perf_counter()
        try:
            with ForkJoinPool(self.parallelism) as pool:
                context = CrawlContext(
                    gate=gate,
                    registry=registry,
                    tally=tally,
                    fetcher=self.fetcher,
                    is_ignored=self.is_ignored,
                    pool=pool,
                    metrics=self.metrics,
                )
                tasks = [CrawlTask(url, self.config.max_depth, context) for url in seeds]
                pool.invoke_all([task.compute for task in tasks])
        finally:
            if stats_thread:
                stats_thread.stop()
                stats_thread.join(timeout=5.0)

        counts = tally.snapshot()
        word_counts = top_k(counts, self.config.popular_word_count) if counts else counts
        result = CrawlResult(word_counts=word_counts, urls_visited=len(registry))
        logging.info(
            "Finished. URLs visited: %d, distinct words: %d, elapsed: %.2fs",
            result.urls_visited,
            len(counts),
            time.perf_counter() - t0,
        )
        return result
