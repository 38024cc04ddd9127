import threading
from typing import Dict, List, Mapping

from .claims import DEFAULT_SHARDS, shard_index


def ranking_key(item):
    word, count = item
    return (-count, -len(word), word)


def top_k(counts: Mapping[str, int], k: int) -> Dict[str, int]:
    """Return the k most popular words, most significant first.

    Ordered by count descending, then word length descending, then
    alphabetically, so equal inputs always rank the same way.
    """
    if k <= 0 or not counts:
        return {}
    ranked = sorted(counts.items(), key=ranking_key)[:k]
    return dict(ranked)


class WordTally:
    """Running word totals shared by all crawl tasks.

    Merges are per-word read-modify-write under the lock of the word's shard;
    summation is order-independent, so concurrent merges need no other ordering.
    """

    def __init__(self, shards: int = DEFAULT_SHARDS):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: List[Dict[str, int]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def merge(self, word_counts: Mapping[str, int]) -> int:
        """Add every count into the tally; returns the number of words added."""
        for word, count in word_counts.items():
            if not isinstance(word, str):
                raise TypeError(f"word must be a string, got {word!r}")
            if isinstance(count, bool) or not isinstance(count, int):
                raise TypeError(f"count for {word!r} must be an integer, got {count!r}")
            if count < 0:
                raise ValueError(f"negative count for {word!r}: {count}")
        n = len(self._shards)
        added = 0
        for word, count in word_counts.items():
            if count == 0:
                continue
            i = shard_index(word, n)
            with self._locks[i]:
                shard = self._shards[i]
                shard[word] = shard.get(word, 0) + count
            added += count
        return added

    def get(self, word: str) -> int:
        i = shard_index(word, len(self._shards))
        with self._locks[i]:
            return self._shards[i].get(word, 0)

    def snapshot(self) -> Dict[str, int]:
        merged: Dict[str, int] = {}
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                merged.update(shard)
        return merged

    def top_k(self, k: int) -> Dict[str, int]:
        return top_k(self.snapshot(), k)

    def __len__(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += len(shard)
        return total
