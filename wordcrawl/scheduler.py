import os
import threading
from collections import deque
from typing import Any, Callable, Deque, Iterable, List, Optional, Sequence, Set


# beyond this many nested helping runs a joining worker only runs its own children
MAX_HELP_NESTING = 16
# beyond this many nested runs a joining worker hands its queued children to a new thread
MAX_INLINE_NESTING = 48


def max_parallelism() -> int:
    return os.cpu_count() or 1


def effective_parallelism(requested: int) -> int:
    return max(1, min(requested, max_parallelism()))


class ForkJoinTask:
    def __init__(self, fn: Callable[..., Any], args: Sequence[Any] = ()):
        self._fn = fn
        self._args = tuple(args)
        self._done = threading.Event()
        self._result: Any = None
        self._exc: Optional[Exception] = None

    def run(self) -> None:
        try:
            self._result = self._fn(*self._args)
        except Exception as e:
            self._exc = e
        finally:
            self._done.set()

    def done(self) -> bool:
        return self._done.is_set()

    def result(self, timeout: Optional[float] = None) -> Any:
        if not self._done.wait(timeout):
            raise TimeoutError("task did not complete in time")
        if self._exc is not None:
            raise self._exc
        return self._result


class ForkJoinPool:
    """Fixed-size work-stealing pool for recursive fork/join work.

    Each worker owns a deque: tasks forked from inside a worker go to its own
    deque and are popped LIFO, idle workers steal FIFO from the others, and
    tasks submitted from outside the pool go through a shared queue. A worker
    blocked in ``invoke_all`` keeps executing queued tasks until its children
    finish, so the pool cannot run out of threads on a deep task tree.

    Running children inline grows the joining thread's stack. Once a worker
    is ``MAX_INLINE_NESTING`` runs deep it moves its queued children to a
    compensating thread with a fresh stack and only waits, so tree depth is
    not limited by the interpreter's recursion limit.
    """

    def __init__(self, parallelism: int, name: str = "crawl-worker"):
        self.parallelism = max(1, parallelism)
        self.name = name
        self._queues: List[Deque[ForkJoinTask]] = [deque() for _ in range(self.parallelism)]
        self._submissions: Deque[ForkJoinTask] = deque()
        self._spare: List[int] = []
        self._cond = threading.Condition()
        self._local = threading.local()
        self._shutdown = False
        self._threads: List[threading.Thread] = []
        for i in range(self.parallelism):
            t = threading.Thread(target=self._worker, args=(i,), name=f"{name}-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def __enter__(self) -> "ForkJoinPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _worker_index(self) -> Optional[int]:
        return getattr(self._local, "index", None)

    def _push(self, tasks: List[ForkJoinTask]) -> None:
        with self._cond:
            if self._shutdown:
                raise RuntimeError("cannot submit work to a pool that has been shut down")
            index = self._worker_index()
            queue = self._queues[index] if index is not None else self._submissions
            queue.extend(tasks)
            self._cond.notify(len(tasks))

    def _take(self, index: int) -> Optional[ForkJoinTask]:
        # caller holds self._cond
        own = self._queues[index]
        if own:
            return own.pop()
        if self._submissions:
            return self._submissions.popleft()
        n = len(self._queues)
        for offset in range(1, n):
            victim = self._queues[(index + offset) % n]
            if victim:
                return victim.popleft()
        return None

    def _unpush(self, index: int, pending: Set[ForkJoinTask]) -> Optional[ForkJoinTask]:
        # caller holds self._cond; children forked by the current join sit on top of the deque
        own = self._queues[index]
        if own and own[-1] in pending:
            return own.pop()
        return None

    def _execute(self, task: ForkJoinTask) -> None:
        task.run()
        with self._cond:
            self._cond.notify_all()

    def _worker(self, index: int) -> None:
        self._local.index = index
        while True:
            with self._cond:
                task = self._take(index)
                while task is None:
                    if self._shutdown:
                        return
                    self._cond.wait()
                    task = self._take(index)
            self._execute(task)

    def _compensate(self, index: int, pending: Set[ForkJoinTask]) -> None:
        # caller holds self._cond; moves the joiner's queued children onto a fresh thread
        own = self._queues[index]
        handed: List[ForkJoinTask] = []
        while own and own[-1] in pending:
            handed.append(own.pop())
        if not handed:
            return
        handed.reverse()
        if self._spare:
            spare = self._spare.pop()
        else:
            spare = len(self._queues)
            self._queues.append(deque())
        self._queues[spare].extend(handed)
        t = threading.Thread(
            target=self._run_compensator,
            args=(spare, handed),
            name=f"{self.name}-c{spare}",
            daemon=True,
        )
        self._threads.append(t)
        t.start()

    def _run_compensator(self, index: int, tasks: List[ForkJoinTask]) -> None:
        self._local.index = index
        self._local.nesting = 0
        try:
            self._join(tasks)
        finally:
            with self._cond:
                self._spare.append(index)

    def _join(self, tasks: List[ForkJoinTask]) -> None:
        index = self._worker_index()
        if index is None:
            for t in tasks:
                t._done.wait()
            return
        nesting = getattr(self._local, "nesting", 0)
        pending = {t for t in tasks if not t.done()}
        while pending:
            task = None
            with self._cond:
                if nesting >= MAX_INLINE_NESTING:
                    self._compensate(index, pending)
                else:
                    task = self._unpush(index, pending)
                    if task is None and nesting < MAX_HELP_NESTING:
                        task = self._take(index)
                if task is None:
                    pending = {t for t in pending if not t.done()}
                    if pending:
                        self._cond.wait(timeout=0.05)
            if task is not None:
                self._local.nesting = nesting + 1
                try:
                    self._execute(task)
                finally:
                    self._local.nesting = nesting
            pending = {t for t in pending if not t.done()}

    def submit(self, fn: Callable[..., Any], *args: Any) -> ForkJoinTask:
        task = ForkJoinTask(fn, args)
        self._push([task])
        return task

    def invoke_all(self, calls: Iterable[Callable[[], Any]]) -> List[Any]:
        """Fork every call, wait for all of them, and return their results in order.

        If any call raised, the first such exception is re-raised once all
        calls have finished.
        """
        tasks = [ForkJoinTask(fn) for fn in calls]
        if not tasks:
            return []
        self._push(tasks)
        self._join(tasks)
        return [t.result() for t in tasks]

    def invoke(self, fn: Callable[..., Any], *args: Any) -> Any:
        task = self.submit(fn, *args)
        self._join([task])
        return task.result()

    def shutdown(self, wait: bool = True) -> None:
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()
        if wait:
            with self._cond:
                threads = list(self._threads)
            for t in threads:
                if t is not threading.current_thread():
                    t.join()
