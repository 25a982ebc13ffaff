"""
Playlist pipeline
=================
Builds one playlist from a folder and a seed song:

1. Load the analysis cache
2. Discover audio files under the folder
3. Analyze files missing from the cache on a worker pool, and the seed song
   in this process while the workers run
4. Merge new analyses over the cache
5. Order the candidate pool starting at the seed
6. Drop near-duplicates
7. Save the cache, then write the playlist

Per-file analysis failures are logged and skipped. Everything else
(invalid folder, corrupt cache, failed writes, unanalyzable seed) raises a
PlaylistError and nothing is written.
"""
import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, TextIO, Tuple

from seed_playlist.analyzer import analyze_song
from seed_playlist.config import PlaylistConfig
from seed_playlist.dedup import dedup_playlist
from seed_playlist.discovery import discover_audio_files
from seed_playlist.distance import DistanceFn, get_distance
from seed_playlist.errors import AnalysisError, CacheCorruptError, SeedNotFoundError
from seed_playlist.exporter import write_playlist
from seed_playlist.feature_store import cached_paths, load_songs, merge_songs, persist_songs
from seed_playlist.logging_utils import ProgressLogger, RunSummary, stage_timer
from seed_playlist.ordering import order_playlist
from seed_playlist.song import Song
from seed_playlist.streaming import AnalysisStream, AnalyzeFn, analyze_paths_streaming

logger = logging.getLogger(__name__)

StreamFactory = Callable[..., AnalysisStream]


@dataclass
class PlaylistResult:
    """
    Outcome of a playlist run.

    Attributes:
        songs: Final playlist, seed first
        analyzed: Paths analyzed successfully during this run (seed included)
        failed: Path -> failure reason for files that could not be analyzed
        cached_hits: Discovered paths served from the cache
        output_path: Playlist file written, or None for stdout
        stats: Ordering and dedup statistics
    """
    songs: List[Song]
    analyzed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    cached_hits: int = 0
    output_path: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)


def resolve_seed_path(seed: str) -> str:
    """Canonical absolute path of the seed song."""
    try:
        resolved = Path(seed).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise SeedNotFoundError(f"Seed song not found: {seed} ({e})") from e
    if not resolved.is_file():
        raise SeedNotFoundError(f"Seed song is not a file: {seed}")
    return str(resolved)


def select_candidates(songs: Iterable[Song], seed_path: str, discovered: Set[str]) -> List[Song]:
    """Songs that belong in this playlist: the seed plus anything found under the folder."""
    return [song for song in songs if song.path == seed_path or song.path in discovered]


def check_cached_dimensions(cached: Iterable[Song], expected: int, cache_file: str) -> None:
    """
    Refuse cached vectors whose length differs from fresh analyses.

    Raises:
        CacheCorruptError: a cache written by a different feature set
    """
    stale = [song.path for song in cached if len(song.features) != expected]
    if stale:
        raise CacheCorruptError(
            f"Analysis cache {cache_file} holds {len(stale)} entries that do not match the "
            f"current {expected}-feature analysis (e.g. {stale[0]}); remove the file or "
            f"choose another with --analysis-file"
        )


def drain_analysis(
    stream: AnalysisStream,
    progress: Optional[ProgressLogger] = None,
) -> Tuple[List[Song], Dict[str, str]]:
    """
    Consume the stream to the end.

    Returns:
        (songs analyzed successfully, {path: reason} for failures)
    """
    analyzed: List[Song] = []
    failed: Dict[str, str] = {}
    for path, outcome in stream:
        if isinstance(outcome, AnalysisError):
            logger.warning(f"Error analyzing {path}: {outcome.reason}")
            failed[path] = outcome.reason
        else:
            analyzed.append(outcome)
        if progress:
            progress.update(detail=path)
    # Completion order is arbitrary; sort so the cache and pool order are stable
    analyzed.sort(key=lambda song: song.path)
    return analyzed, failed


def build_playlist(
    config: PlaylistConfig,
    analyze: Optional[AnalyzeFn] = None,
    distance: Optional[DistanceFn] = None,
    stream_factory: StreamFactory = analyze_paths_streaming,
    out_stream: Optional[TextIO] = None,
) -> PlaylistResult:
    """
    Run the whole pipeline for one playlist.

    Args:
        config: Validated run configuration
        analyze: Path -> Song analyzer (default: librosa at config.sample_rate)
        distance: Distance function (default: the one named in config)
        stream_factory: Builds the completion stream for pending files
        out_stream: Where to print the playlist when no output file is set

    Returns:
        PlaylistResult

    Raises:
        PlaylistError: any fatal error; no files are written in that case
    """
    if analyze is None:
        analyze = functools.partial(analyze_song, sample_rate=config.sample_rate)
    if distance is None:
        distance = get_distance(config.distance)

    summary = RunSummary("Playlist", logger=logger)

    seed_path = resolve_seed_path(config.seed)
    logger.info(f"Seed song: {seed_path}")

    with stage_timer("Loading analysis cache", logger):
        cached = load_songs(config.analysis_file)
    already_analyzed = cached_paths(cached)

    with stage_timer("Discovery", logger):
        discovered = discover_audio_files(config.folder)

    # The seed is always analyzed fresh, never taken from the cache
    pending = discovered - already_analyzed - {seed_path}
    cached_hits = len((discovered & already_analyzed) - {seed_path})
    summary.add("discovered", len(discovered))
    summary.add("cache_hits", cached_hits)
    summary.add("to_analyze", len(pending) + 1)

    with stage_timer("Analysis", logger):
        with stream_factory(
            pending,
            analyze=analyze,
            workers=config.workers,
            use_processes=config.use_processes,
        ) as stream:
            seed_song = analyze(seed_path)
            progress = ProgressLogger(
                logger,
                total=len(pending),
                label="Analysis",
                unit="files",
                verbose_each=config.verbose_progress,
            )
            analyzed, failed = drain_analysis(stream, progress)
            progress.finish()

    summary.add("analyzed", len(analyzed) + 1)
    summary.add("failed", len(failed))

    fresh_paths = {seed_path} | {song.path for song in analyzed}
    check_cached_dimensions(
        [song for song in cached if song.path not in fresh_paths],
        len(seed_song.features),
        config.analysis_file,
    )
    merged = merge_songs(cached, [seed_song] + analyzed)
    candidates = select_candidates(merged, seed_path, discovered)

    with stage_timer("Ordering", logger):
        ordering = order_playlist(seed_song, candidates, distance, method=config.ordering)
    songs = ordering.songs
    stats = dict(ordering.stats)

    if config.dedup:
        before = len(songs)
        songs = dedup_playlist(songs, threshold=config.dedup_threshold, distance=distance)
        stats['dedup_removed'] = before - len(songs)
        summary.add("duplicates_removed", before - len(songs))

    persist_songs(merged, config.analysis_file)
    output_path = write_playlist(
        songs,
        output=config.output_playlist,
        fmt=config.output_format,
        stream=out_stream,
    )

    summary.add("playlist_length", len(songs))
    summary.log()

    return PlaylistResult(
        songs=songs,
        analyzed=[seed_path] + [song.path for song in analyzed],
        failed=failed,
        cached_hits=cached_hits,
        output_path=output_path,
        stats=stats,
    )
