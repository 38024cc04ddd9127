import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .aggregator import WordTally
from .claims import ClaimRegistry
from .errors import FetchError
from .metrics import Metrics
from .scheduler import ForkJoinPool
from .timegate import TimeGate
from .types import DocumentFetcher, PageParseResult


logger = logging.getLogger(__name__)


class TaskState(enum.Enum):
    NOT_STARTED = "not_started"
    REJECTED = "rejected"
    CLAIMED = "claimed"
    FETCHING = "fetching"
    MERGING = "merging"
    SPAWNING = "spawning"
    JOINING = "joining"
    DONE = "done"


@dataclass(frozen=True)
class CrawlContext:
    """Handles to the state every task of one crawl shares."""

    gate: TimeGate
    registry: ClaimRegistry
    tally: WordTally
    fetcher: DocumentFetcher
    is_ignored: Callable[[str], bool]
    pool: ForkJoinPool
    metrics: Optional[Metrics] = None


class CrawlTask:
    """Visit one URL with a remaining depth budget, then fork one child per link."""

    def __init__(self, url: str, depth: int, context: CrawlContext):
        self.url = url
        self.depth = depth
        self.context = context
        self.state = TaskState.NOT_STARTED
        self._fetch_ms = 0.0

    def __repr__(self) -> str:
        return f"CrawlTask(url={self.url!r}, depth={self.depth}, state={self.state.name})"

    def _reject(self, reason: str) -> bool:
        logger.debug("Skipping %s (%s)", self.url, reason)
        self.state = TaskState.REJECTED
        if self.context.metrics:
            self.context.metrics.record_rejected()
        return False

    def _fetch(self) -> Optional[PageParseResult]:
        ctx = self.context
        t0 = time.perf_counter()
        try:
            fetched = ctx.fetcher.fetch(self.url)
            result = PageParseResult(
                word_counts=dict(fetched.word_counts),
                links=[link for link in fetched.links if isinstance(link, str) and link],
            )
        except FetchError as e:
            logger.warning("Fetch failed for %s: %s", self.url, e.reason)
            result = None
        except Exception:
            logger.warning("Unexpected error fetching %s", self.url, exc_info=True)
            result = None
        self._fetch_ms = (time.perf_counter() - t0) * 1000.0
        return result

    def _record_fetch(self, ok: bool, words: int) -> None:
        if self.context.metrics:
            self.context.metrics.record_fetch(ok, words, self._fetch_ms)

    def compute(self) -> bool:
        ctx = self.context
        if self.depth <= 0:
            return self._reject("depth exhausted")
        if ctx.gate.expired():
            return self._reject("deadline passed")
        if ctx.is_ignored(self.url):
            return self._reject("ignored")
        if not ctx.registry.try_claim(self.url):
            return self._reject("already visited")

        self.state = TaskState.CLAIMED
        self.state = TaskState.FETCHING
        result = self._fetch()
        if result is None:
            self._record_fetch(False, 0)
            self.state = TaskState.DONE
            return True

        self.state = TaskState.MERGING
        try:
            words = ctx.tally.merge(result.word_counts)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding word counts from %s: %s", self.url, e)
            self._record_fetch(False, 0)
        else:
            self._record_fetch(True, words)

        self.state = TaskState.SPAWNING
        children: List[CrawlTask] = [CrawlTask(link, self.depth - 1, ctx) for link in result.links]

        self.state = TaskState.JOINING
        if children:
            ctx.pool.invoke_all([child.compute for child in children])
        self.state = TaskState.DONE
        return True
