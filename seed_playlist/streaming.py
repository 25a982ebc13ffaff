"""
Streaming Analyzer
==================
Analyzes a set of files on a worker pool and hands results back in
completion order.

    with analyze_paths_streaming(paths) as stream:
        for path, outcome in stream:
            if isinstance(outcome, AnalysisError):
                ...

Every submitted path yields exactly one (path, outcome) pair, where outcome
is either a Song or an AnalysisError. Worker exceptions never reach the
consumer as raised exceptions.
"""
import logging
import multiprocessing
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from seed_playlist.analyzer import analyze_song
from seed_playlist.errors import AnalysisError
from seed_playlist.song import Song

logger = logging.getLogger(__name__)

Outcome = Union[Song, AnalysisError]
AnalyzeFn = Callable[[str], Song]


def default_worker_count() -> int:
    """CPU count minus headroom for the orchestrating process, capped at 16."""
    return max(1, min(16, multiprocessing.cpu_count() - 1))


def _run_analysis(analyze: AnalyzeFn, path: str) -> Outcome:
    """Runs inside the worker; failures are returned, not raised."""
    try:
        return analyze(path)
    except AnalysisError as e:
        return e
    except Exception as e:
        return AnalysisError(path, f"{type(e).__name__}: {e}")


class AnalysisStream:
    """Completion stream over a running pool of analysis jobs."""

    def __init__(
        self,
        paths: Iterable[str],
        analyze: AnalyzeFn = analyze_song,
        workers: Optional[int] = None,
        use_processes: bool = True,
    ):
        self.paths = sorted(set(paths))
        self.total = len(self.paths)
        self._consumed = False
        self._executor: Optional[Executor] = None
        self._futures: Dict[Future, str] = {}

        if not self.paths:
            return

        if workers is None:
            workers = default_worker_count()
        workers = max(1, min(workers, self.total))
        executor_cls = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
        self._executor = executor_cls(max_workers=workers)
        self._futures = {
            self._executor.submit(_run_analysis, analyze, path): path
            for path in self.paths
        }
        logger.info(
            f"Dispatched {self.total} files to {workers} "
            f"{'process' if use_processes else 'thread'} workers"
        )

    def __iter__(self) -> Iterator[Tuple[str, Outcome]]:
        if self._consumed:
            raise RuntimeError("Analysis stream can only be consumed once")
        self._consumed = True
        return self._drain()

    def _drain(self) -> Iterator[Tuple[str, Outcome]]:
        try:
            for future in as_completed(self._futures):
                path = self._futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    # Broken pool, unpicklable result, cancelled job
                    outcome = AnalysisError(path, f"worker failed: {e}")
                yield path, outcome
        finally:
            self.close()

    def close(self) -> None:
        """Shut the pool down, dropping jobs that have not started yet."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> 'AnalysisStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def analyze_paths_streaming(
    paths: Iterable[str],
    analyze: AnalyzeFn = analyze_song,
    workers: Optional[int] = None,
    use_processes: bool = True,
) -> AnalysisStream:
    """
    Start analyzing paths concurrently and return the completion stream.

    Args:
        paths: Files to analyze (duplicates are collapsed)
        analyze: Callable turning a path into a Song; must be picklable
            when use_processes is True
        workers: Pool size (default: CPU count - 1, at most 16)
        use_processes: Use a process pool (CPU-bound decoding) or threads

    Returns:
        AnalysisStream yielding (path, Song | AnalysisError) as jobs finish
    """
    return AnalysisStream(paths, analyze=analyze, workers=workers, use_processes=use_processes)
