"""
Playlist ordering module.

Two strategies over a candidate pool and a distance function:
- song_to_song: greedy nearest-neighbor chain, each pick is the song
  closest to the previously picked one
- closest_to_seed: every song sorted by its distance to the seed
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List
import logging
import time

from seed_playlist.distance import DistanceFn
from seed_playlist.song import Song

logger = logging.getLogger(__name__)

ORDERING_METHODS = ("song_to_song", "closest_to_seed")


@dataclass(frozen=True)
class OrderingResult:
    """
    Result of ordering operation.

    Attributes:
        songs: Songs in playlist order, seed first
        stats: Diagnostic statistics (method, length, mean transition distance, elapsed)
    """
    songs: List[Song]
    stats: Dict[str, Any] = field(default_factory=dict)


def _without_seed(seed: Song, pool: Iterable[Song]) -> List[Song]:
    remaining: List[Song] = []
    seen = {seed.path}
    for song in pool:
        if song.path in seen:
            continue
        seen.add(song.path)
        remaining.append(song)
    return remaining


def song_to_song(seed: Song, pool: Iterable[Song], distance: DistanceFn) -> List[Song]:
    """
    Greedy nearest-neighbor chain starting at seed.

    Ties go to the song that comes first in pool order, which makes the
    result deterministic for a given pool order.
    """
    remaining = _without_seed(seed, pool)
    ordered = [seed]

    while remaining:
        last = ordered[-1]
        best_idx = 0
        best_distance = distance(last, remaining[0])
        for idx in range(1, len(remaining)):
            d = distance(last, remaining[idx])
            if d < best_distance:
                best_idx = idx
                best_distance = d
        ordered.append(remaining.pop(best_idx))

    return ordered


def closest_to_seed(seed: Song, pool: Iterable[Song], distance: DistanceFn) -> List[Song]:
    """Seed followed by the pool sorted by distance to the seed (stable)."""
    remaining = _without_seed(seed, pool)
    return [seed] + sorted(remaining, key=lambda song: distance(seed, song))


def order_playlist(
    seed: Song,
    pool: Iterable[Song],
    distance: DistanceFn,
    method: str = "song_to_song",
) -> OrderingResult:
    """
    Order the candidate pool starting from seed.

    Args:
        seed: First song of the playlist
        pool: Candidate songs (may include the seed)
        distance: Symmetric non-negative distance between two songs
        method: "song_to_song" or "closest_to_seed"

    Returns:
        OrderingResult with the ordered songs and statistics
    """
    if method == "song_to_song":
        order_fn = song_to_song
    elif method == "closest_to_seed":
        order_fn = closest_to_seed
    else:
        raise ValueError(f"Unknown ordering method '{method}' (choose from {', '.join(ORDERING_METHODS)})")

    start = time.perf_counter()
    songs = order_fn(seed, pool, distance)
    elapsed = time.perf_counter() - start

    transitions = [distance(a, b) for a, b in zip(songs, songs[1:])]
    stats = {
        'method': method,
        'length': len(songs),
        'mean_transition': sum(transitions) / len(transitions) if transitions else 0.0,
        'max_transition': max(transitions) if transitions else 0.0,
        'elapsed_s': elapsed,
    }
    logger.debug(
        f"Ordered {len(songs)} songs via {method} "
        f"(mean transition {stats['mean_transition']:.4f}, {elapsed*1000:.0f}ms)"
    )
    return OrderingResult(songs=songs, stats=stats)
