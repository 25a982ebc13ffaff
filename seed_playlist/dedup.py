"""
Near-duplicate removal for ordered playlists.

Each song is compared with the last song that was kept, not with its raw
predecessor: a long run of near-identical songs collapses to its first
member instead of surviving pair by pair.
"""
import logging
from typing import Iterable, List, Optional

from seed_playlist.distance import DEFAULT_DEDUP_THRESHOLD, DistanceFn, euclidean_distance
from seed_playlist.song import Song

logger = logging.getLogger(__name__)


def dedup_playlist(
    songs: Iterable[Song],
    threshold: Optional[float] = None,
    distance: DistanceFn = euclidean_distance,
) -> List[Song]:
    """
    Drop songs that are closer than threshold to the last kept song.

    Args:
        songs: Ordered playlist
        threshold: Minimum distance to keep a song (default DEFAULT_DEDUP_THRESHOLD)
        distance: Distance function

    Returns:
        New list, an order-preserving subsequence of songs
    """
    if threshold is None:
        threshold = DEFAULT_DEDUP_THRESHOLD
    if threshold < 0:
        raise ValueError(f"Dedup threshold must be >= 0, got {threshold}")

    kept: List[Song] = []
    dropped = 0
    for song in songs:
        if not kept:
            kept.append(song)
            continue
        anchor = kept[-1]
        if distance(anchor, song) < threshold:
            logger.debug(f"Dropping near-duplicate {song.path} (anchor {anchor.path})")
            dropped += 1
            continue
        kept.append(song)

    if dropped:
        logger.info(f"Removed {dropped} near-duplicate songs (threshold {threshold:g})")
    return kept
