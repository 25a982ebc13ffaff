"""
Distance functions between analyzed songs.
"""
from typing import Callable, Dict

from scipy.spatial.distance import cosine, euclidean

from seed_playlist.song import Song

DistanceFn = Callable[[Song, Song], float]

# Features live in [-1, 1]; songs closer than this are near-identical
DEFAULT_DEDUP_THRESHOLD = 0.05


def euclidean_distance(a: Song, b: Song) -> float:
    return float(euclidean(a.vector, b.vector))


def cosine_distance(a: Song, b: Song) -> float:
    """1 - cosine similarity. A zero vector is at distance 1 from any other vector."""
    va, vb = a.vector, b.vector
    if not va.any() or not vb.any():
        return 1.0 if va.any() or vb.any() else 0.0
    return max(0.0, float(cosine(va, vb)))


DISTANCES: Dict[str, DistanceFn] = {
    'euclidean': euclidean_distance,
    'cosine': cosine_distance,
}


def get_distance(name: str) -> DistanceFn:
    try:
        return DISTANCES[name]
    except KeyError:
        raise ValueError(f"Unknown distance '{name}' (choose from {sorted(DISTANCES)})") from None
