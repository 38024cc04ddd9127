import threading
from typing import FrozenSet, List, Set

import mmh3


DEFAULT_SHARDS = 64


def shard_index(key: str, shards: int) -> int:
    return mmh3.hash(key, 0, signed=False) % shards


class ClaimRegistry:
    """Set of visited URLs with an atomic first-caller-wins claim.

    URLs are spread over lock-striped shards by murmur3 hash, so concurrent
    claims only serialize when they land on the same shard.
    """

    def __init__(self, shards: int = DEFAULT_SHARDS):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: List[Set[str]] = [set() for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def try_claim(self, url: str) -> bool:
        """Return True exactly once per URL, for whichever caller gets there first."""
        i = shard_index(url, len(self._shards))
        shard = self._shards[i]
        with self._locks[i]:
            if url in shard:
                return False
            shard.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        i = shard_index(url, len(self._shards))
        with self._locks[i]:
            return url in self._shards[i]

    def __len__(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += len(shard)
        return total

    def snapshot(self) -> FrozenSet[str]:
        claimed: Set[str] = set()
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                claimed.update(shard)
        return frozenset(claimed)
