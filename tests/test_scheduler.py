import threading

import pytest

from wordcrawl import scheduler
from wordcrawl.scheduler import ForkJoinPool, effective_parallelism


def fib(pool, n):
    if n < 2:
        return n
    a, b = pool.invoke_all([lambda: fib(pool, n - 1), lambda: fib(pool, n - 2)])
    return a + b


def test_nested_fork_join_on_single_worker():
    with ForkJoinPool(1) as pool:
        assert pool.invoke(fib, pool, 12) == 144


def test_nested_fork_join_on_many_workers():
    with ForkJoinPool(4) as pool:
        assert pool.invoke(fib, pool, 15) == 610


def test_unbalanced_tree_completes():
    seen = []
    lock = threading.Lock()

    def node(pool, depth, fanout):
        with lock:
            seen.append(depth)
        if depth == 0:
            return 1
        # one wide branch, the rest leaves
        children = [lambda: node(pool, depth - 1, fanout)] + [lambda: node(pool, 0, 0) for _ in range(fanout)]
        return 1 + sum(pool.invoke_all(children))

    with ForkJoinPool(3) as pool:
        total = pool.invoke(node, pool, 5, 100)
    assert total == len(seen)
    assert total == 5 * 101 + 1


def test_invoke_all_preserves_order_and_empty():
    with ForkJoinPool(2) as pool:
        assert pool.invoke_all([lambda i=i: i * i for i in range(20)]) == [i * i for i in range(20)]
        assert pool.invoke_all([]) == []


def test_exception_is_reraised_after_all_calls_finish():
    finished = []

    def ok(i):
        finished.append(i)
        return i

    def boom():
        raise RuntimeError("boom")

    with ForkJoinPool(2) as pool:
        with pytest.raises(RuntimeError, match="boom"):
            pool.invoke_all([lambda: ok(1), boom, lambda: ok(2)])
    assert sorted(finished) == [1, 2]


def test_submit_after_shutdown_fails():
    pool = ForkJoinPool(1)
    pool.shutdown()
    with pytest.raises(RuntimeError):
        pool.submit(lambda: None)


def test_workers_are_named_threads():
    with ForkJoinPool(2, name="test-pool") as pool:
        name = pool.invoke(lambda: threading.current_thread().name)
    assert name.startswith("test-pool-")


def test_effective_parallelism_is_bounded_by_cpus(monkeypatch):
    monkeypatch.setattr(scheduler.os, "cpu_count", lambda: 4)
    assert effective_parallelism(16) == 4
    assert effective_parallelism(2) == 2
    assert effective_parallelism(0) == 1
    monkeypatch.setattr(scheduler.os, "cpu_count", lambda: None)
    assert effective_parallelism(8) == 1


def chain(pool, n, names):
    names.add(threading.current_thread().name)
    if n == 0:
        return 0
    (rest,) = pool.invoke_all([lambda: chain(pool, n - 1, names)])
    return rest + 1


@pytest.mark.parametrize("parallelism", [1, 3])
def test_deep_chain_completes(parallelism):
    with ForkJoinPool(parallelism) as pool:
        assert pool.invoke(chain, pool, 600, set()) == 600


def test_deep_chain_moves_to_fresh_threads():
    names = set()
    with ForkJoinPool(1, name="deep") as pool:
        assert pool.invoke(chain, pool, 600, names) == 600
    # only one worker, so nothing is stolen and every level nests on the joining thread
    assert any(name.startswith("deep-c") for name in names)


def test_nesting_limits_keep_results_correct(monkeypatch):
    monkeypatch.setattr(scheduler, "MAX_HELP_NESTING", 1)
    monkeypatch.setattr(scheduler, "MAX_INLINE_NESTING", 3)
    with ForkJoinPool(3) as pool:
        assert pool.invoke(fib, pool, 14) == 377
        assert pool.invoke(chain, pool, 50, set()) == 50
    names = set()
    with ForkJoinPool(1, name="tight") as pool:
        assert pool.invoke(fib, pool, 10) == 55
        assert pool.invoke(chain, pool, 50, names) == 50
    assert any(name.startswith("tight-c") for name in names)


def test_shutdown_joins_compensating_threads(monkeypatch):
    monkeypatch.setattr(scheduler, "MAX_INLINE_NESTING", 2)
    names = set()
    pool = ForkJoinPool(2, name="drain")
    assert pool.invoke(chain, pool, 20, names) == 20
    pool.shutdown()
    assert not any(t.name.startswith("drain-") and t.is_alive() for t in threading.enumerate())
