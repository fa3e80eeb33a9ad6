"""Bounded, thread-safe transposition table keyed by Zobrist fingerprints."""

import threading
from dataclasses import dataclass
from typing import List, Optional

from .board import Move

# Bound types of a stored score
TT_EXACT = 0
TT_LOWER = 1  # Fail high: true score >= stored score
TT_UPPER = 2  # Fail low: true score <= stored score


@dataclass(frozen=True)
class TTEntry:
    key: int
    depth: int
    score: int
    flag: int
    move: Optional[Move]


class TranspositionTable:
    """Fixed number of slots, one entry per slot.

    A slot is chosen by ``key % max_entries``; the full key is kept in the
    entry so collisions between positions sharing a slot are detected on
    lookup. An entry is only replaced by one from an equal or deeper search,
    or by a different position. Slots are guarded by a small set of locks so
    root-parallel workers can share one table.
    """

    def __init__(self, max_entries: int = 1 << 18, stripes: int = 16):
        self.max_entries = max_entries
        self._slots: List[Optional[TTEntry]] = [None] * max_entries
        self._locks = [threading.Lock() for _ in range(stripes)]
        self._size = 0
        self.hits = 0
        self.misses = 0

    def _lock_for(self, slot: int) -> threading.Lock:
        return self._locks[slot % len(self._locks)]

    def get(self, key: int) -> Optional[TTEntry]:
        slot = key % self.max_entries
        with self._lock_for(slot):
            entry = self._slots[slot]
        if entry is None or entry.key != key:
            self.misses += 1
            return None
        self.hits += 1
        return entry

    def store(self, key: int, depth: int, score: int, flag: int, move: Optional[Move]):
        slot = key % self.max_entries
        entry = TTEntry(key, depth, score, flag, move)
        with self._lock_for(slot):
            current = self._slots[slot]
            if current is None:
                self._size += 1
            elif current.key == key and current.depth > depth:
                return
            self._slots[slot] = entry

    def clear(self):
        for lock in self._locks:
            lock.acquire()
        try:
            self._slots = [None] * self.max_entries
            self._size = 0
            self.hits = 0
            self.misses = 0
        finally:
            for lock in self._locks:
                lock.release()

    def __len__(self) -> int:
        return self._size
