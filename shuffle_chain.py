"""
Shuffle Chain - Weighted random track picking with a recency window
Picks a pool by aggregate weight, then a track inside it, skipping recent picks.
"""

from collections import Counter, deque
from typing import Hashable, Iterable, List, Optional

import numpy as np

from config import config
from errors import EmptyChainError


class TrackPool:
    """
    A group of track URIs sharing one key.
    Keeps running weight totals so picks never re-sum the pool.
    """

    def __init__(self, key: Hashable):
        self.key = key
        self.tracks: List[str] = []
        self.weights: List[float] = []
        self.total = 0.0
        self.weight_by_track = {}    # uri -> summed weight of its entries
        self._cumulative = None      # rebuilt lazily after an add

    def add(self, track: str, weight: float):
        self.tracks.append(track)
        self.weights.append(weight)
        self.total += weight
        self.weight_by_track[track] = self.weight_by_track.get(track, 0.0) + weight
        self._cumulative = None

    def cumulative(self) -> np.ndarray:
        if self._cumulative is None:
            self._cumulative = np.cumsum(np.asarray(self.weights, dtype=float))
        return self._cumulative

    def __len__(self):
        return len(self.tracks)


def _search(cumulative: np.ndarray, rng: np.random.Generator) -> int:
    """Draw an index from a cumulative weight array."""
    target = rng.random() * cumulative[-1]
    index = int(np.searchsorted(cumulative, target, side='right'))
    return min(index, len(cumulative) - 1)


class ShuffleChain:
    """
    Produces random picks from a set of weighted pools.

    Adding the same URI twice (to one pool or several) keeps both entries,
    which is how callers boost a track's weight.
    """

    # Rejection sampling is used while at least this share of the pool's
    # weight is outside the window; below it the pool is masked instead.
    REJECTION_FREE_SHARE = 0.5
    REJECTION_ATTEMPTS = 32

    def __init__(self, window_size: int = None, rng: Optional[np.random.Generator] = None):
        if window_size is None:
            window_size = config.window_size
        if window_size < 1:
            raise ValueError(f"window size must be at least 1, got {window_size}")

        self.window_size = window_size
        self.rng = rng if rng is not None else np.random.default_rng()

        self.pools: List[TrackPool] = []
        self._pool_by_key = {}
        self._pool_cumulative = None
        self._length = 0

        self._window = deque()
        self._windowed = Counter()    # uri -> occurrences inside the window

    def add(self, track: str, weight: float = 1, group: Hashable = None):
        """Insert a track into the pool named by group, creating it if needed."""
        if not weight > 0:
            raise ValueError(f"track weight must be positive, got {weight}")

        pool = self._pool_by_key.get(group)
        if pool is None:
            pool = TrackPool(group)
            self._pool_by_key[group] = pool
            self.pools.append(pool)

        pool.add(track, float(weight))
        self._pool_cumulative = None
        self._length += 1

    def add_group(self, tracks: Iterable[str], weight: float = 1, group: Hashable = None):
        """
        Add a group of tracks as one pool whose aggregate weight is `weight`.
        Every group added this way is equally likely at the pool level,
        whatever its size.
        """
        tracks = list(tracks)
        if not tracks:
            return
        if group is None:
            group = ('group', len(self.pools))
        share = float(weight) / len(tracks)
        for track in tracks:
            self.add(track, share, group)

    def __len__(self):
        return self._length

    def items(self) -> List[str]:
        """Every track entry, pool by pool."""
        return [track for pool in self.pools for track in pool.tracks]

    def recent(self) -> List[str]:
        """Picks currently held in the recency window, oldest first."""
        return list(self._window)

    def pick(self) -> str:
        """Pick a track and remember it in the recency window."""
        if self._length == 0:
            raise EmptyChainError("cannot pick from an empty shuffle chain (no tracks matched)")

        if self._pool_cumulative is None:
            self._pool_cumulative = np.cumsum([pool.total for pool in self.pools])
        pool = self.pools[_search(self._pool_cumulative, self.rng)]

        track = self._pick_from(pool)
        self._remember(track)
        return track

    def _pick_from(self, pool: TrackPool) -> str:
        windowed_weight = sum(
            pool.weight_by_track.get(track, 0.0) for track in self._windowed
        )

        # Nothing windowed, or everything windowed: plain weighted draw.
        if windowed_weight <= 0 or windowed_weight >= pool.total * (1 - 1e-12):
            return pool.tracks[_search(pool.cumulative(), self.rng)]

        if pool.total - windowed_weight >= pool.total * self.REJECTION_FREE_SHARE:
            cumulative = pool.cumulative()
            for _ in range(self.REJECTION_ATTEMPTS):
                track = pool.tracks[_search(cumulative, self.rng)]
                if track not in self._windowed:
                    return track

        allowed = np.fromiter(
            (track not in self._windowed for track in pool.tracks),
            dtype=bool,
            count=len(pool),
        )
        weights = np.where(allowed, np.asarray(pool.weights, dtype=float), 0.0)
        return pool.tracks[_search(np.cumsum(weights), self.rng)]

    def _remember(self, track: str):
        self._window.append(track)
        self._windowed[track] += 1
        while len(self._window) > self.window_size:
            evicted = self._window.popleft()
            self._windowed[evicted] -= 1
            if self._windowed[evicted] <= 0:
                del self._windowed[evicted]
