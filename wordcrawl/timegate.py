import time
from typing import Callable


class TimeGate:
    """Answers whether the crawl's time budget has run out.

    The deadline is fixed at construction; callers share one gate per crawl.
    """

    def __init__(self, deadline: float, now: Callable[[], float] | None = None):
        self.deadline = deadline
        self._now = now or time.monotonic

    @classmethod
    def start(cls, budget_seconds: float, now: Callable[[], float] | None = None) -> "TimeGate":
        clock = now or time.monotonic
        return cls(clock() + budget_seconds, now=clock)

    def expired(self) -> bool:
        return self._now() >= self.deadline

    def remaining(self) -> float:
        return max(0.0, self.deadline - self._now())
