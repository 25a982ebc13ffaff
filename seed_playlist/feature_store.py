"""
Feature Store - JSON cache of analyzed songs

The cache is a JSON array of {"path": ..., "analysis": [...]} records. It is
loaded once at startup, extended with the songs analyzed during the run and
written back in full at the end.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Set, Union

from seed_playlist.errors import CacheCorruptError, CacheWriteError
from seed_playlist.song import Song

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_songs(path: PathLike) -> List[Song]:
    """
    Load previously analyzed songs.

    Args:
        path: Cache file path

    Returns:
        Songs in file order; empty list when the file does not exist

    Raises:
        CacheCorruptError: file exists but is not a valid cache
    """
    cache_path = Path(path)
    if not cache_path.exists():
        logger.info(f"No analysis cache at {cache_path}; starting empty")
        return []

    try:
        with open(cache_path, 'r', encoding='utf-8') as f:
            records = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CacheCorruptError(f"Cannot read analysis cache {cache_path}: {e}") from e

    if not isinstance(records, list):
        raise CacheCorruptError(
            f"Analysis cache {cache_path} must hold a JSON array, got {type(records).__name__}"
        )

    songs = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise CacheCorruptError(f"Analysis cache {cache_path}: record {i} is not an object")
        try:
            songs.append(Song.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            raise CacheCorruptError(f"Analysis cache {cache_path}: record {i} is invalid ({e})") from e
        if len(songs[-1].features) != len(songs[0].features):
            raise CacheCorruptError(
                f"Analysis cache {cache_path}: record {i} has {len(songs[-1].features)} features, "
                f"expected {len(songs[0].features)}"
            )

    logger.info(f"Loaded {len(songs)} cached analyses from {cache_path}")
    return songs


def cached_paths(songs: Iterable[Song]) -> Set[str]:
    return {song.path for song in songs}


def merge_songs(existing: Iterable[Song], newly_analyzed: Iterable[Song]) -> List[Song]:
    """
    Merge freshly analyzed songs over the cached ones.

    New songs come first and win over a cached record with the same path.
    Repeats inside either input keep their first occurrence.
    """
    merged: List[Song] = []
    seen: Set[str] = set()
    for song in list(newly_analyzed) + list(existing):
        if song.path in seen:
            continue
        seen.add(song.path)
        merged.append(song)
    return merged


def persist_songs(songs: Iterable[Song], path: PathLike) -> None:
    """
    Write the full song collection, replacing the previous cache.

    The data goes to a temporary file in the same directory which is then
    renamed over the target, so an interrupted write leaves the old cache
    in place.

    Raises:
        CacheWriteError: on any filesystem failure
    """
    cache_path = Path(path)
    records = [song.to_dict() for song in songs]
    tmp_name = None
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{cache_path.name}.", suffix='.tmp', dir=str(cache_path.parent)
        )
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(records, f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, cache_path)
        tmp_name = None
    except OSError as e:
        raise CacheWriteError(f"Failed to write analysis cache {cache_path}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug(f"Could not remove temporary cache file {tmp_name}")

    logger.info(f"Saved {len(records)} analyses to {cache_path}")
