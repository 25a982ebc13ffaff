"""
Logging utilities for seed-playlist.

Entrypoints call configure_logging() once at startup. Console output goes to
stderr: stdout is reserved for the playlist itself.
"""
import inspect
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

# Track whether logging has been configured
_logging_configured = False
_HANDLER_TAG = "_seed_playlist_handler"
_CONSOLE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(message)s'
_FILE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'

# Audio stack loggers that flood DEBUG output
_NOISY_LOGGERS = ['numba', 'audioread', 'librosa', 'matplotlib', 'PIL']


def configure_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    file_level: str = 'DEBUG',
    force: bool = False,
    console: bool = True,
) -> None:
    """
    Configure logging for the entire application.

    Subsequent calls are ignored unless force=True.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        file_level: Log level for file output (default DEBUG)
        force: If True, reconfigure even if already configured
        console: Whether to add a console handler (stderr)

    Environment variable overrides:
        LOG_LEVEL: Override the level parameter
        LOG_FILE: Override the log_file parameter
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = os.getenv('LOG_LEVEL', level).upper()
    if log_file is None:
        log_file = os.getenv('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    # Remove handlers we previously installed (tagged)
    for handler in root.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level, logging.INFO))
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FMT, datefmt='%H:%M:%S'))
        setattr(console_handler, _HANDLER_TAG, True)
        root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(_FILE_FMT, datefmt='%Y-%m-%d %H:%M:%S'))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _logging_configured = True
    logging.getLogger(__name__).debug(f"Logging configured: level={level}, file={log_file or 'none'}")


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None):
    """
    Time a pipeline stage.

    Logs stage start at DEBUG, completion with timing at INFO.

    Usage:
        with stage_timer("Discovery"):
            paths = discover_audio_files(folder)
    """
    if logger is None:
        # Log under the caller's module name
        frame = inspect.currentframe()
        caller = frame.f_back.f_back if frame and frame.f_back else None
        logger = logging.getLogger(caller.f_globals.get('__name__', __name__) if caller else __name__)

    logger.debug(f"{stage_name} starting...")
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if elapsed < 1:
            logger.info(f"{stage_name} completed in {elapsed*1000:.0f}ms")
        else:
            logger.info(f"{stage_name} completed in {_human_time(elapsed)}")


def format_count(n: int, singular: str, plural: Optional[str] = None) -> str:
    """Format a count with its noun, e.g. "1 song" or "1,204 songs"."""
    if plural is None:
        plural = singular + 's'
    return f"{n:,} {singular if n == 1 else plural}"


def _human_time(seconds: float) -> str:
    """Render a human-friendly duration."""
    seconds = max(0, seconds)
    if seconds < 60:
        return f"{seconds:.1f}s" if seconds < 10 else f"{int(seconds)}s"
    minutes, sec = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m{sec:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m"


class ProgressLogger:
    """
    Periodic progress updates while draining long-running work.

    INFO summaries every interval_s seconds or every_n items; with
    verbose_each, one DEBUG line per item as well.
    """

    def __init__(
        self,
        logger: logging.Logger,
        total: Optional[int],
        label: str,
        unit: str = "files",
        interval_s: float = 15.0,
        every_n: int = 100,
        verbose_each: bool = False,
    ) -> None:
        self.logger = logger
        self.total = total if total and total > 0 else None
        self.label = label
        self.unit = unit
        self.interval_s = interval_s
        self.every_n = every_n
        self.verbose_each = verbose_each
        self.start_time = time.perf_counter()
        self.last_log_time = self.start_time
        self.last_count = 0
        self.processed = 0

    def _should_emit(self) -> bool:
        now = time.perf_counter()
        if (now - self.last_log_time) >= self.interval_s:
            return True
        if (self.processed - self.last_count) >= self.every_n:
            return True
        return bool(self.total and self.processed >= self.total)

    def _progress_msg(self) -> str:
        elapsed = time.perf_counter() - self.start_time
        rate = self.processed / elapsed if elapsed > 0 else 0.0
        msg = f"{self.label}: {self.processed:,}"
        if self.total:
            msg += f"/{self.total:,} ({self.processed / self.total * 100:.1f}%)"
        msg += f" | {rate:.1f} {self.unit}/s"
        if self.total and rate > 0:
            msg += f" | ETA {_human_time(max(self.total - self.processed, 0) / rate)}"
        return msg

    def update(self, n: int = 1, detail: Optional[str] = None) -> None:
        self.processed += n
        if self.verbose_each and detail:
            name = Path(detail).name if os.path.isabs(detail) else detail
            suffix = f"/{self.total}" if self.total else ""
            self.logger.debug(f"{self.label} item {self.processed}{suffix}: {name}")
        if self._should_emit():
            self.logger.info(self._progress_msg())
            self.last_log_time = time.perf_counter()
            self.last_count = self.processed

    def finish(self) -> None:
        elapsed = time.perf_counter() - self.start_time
        self.logger.info(
            f"{self.label} complete: {format_count(self.processed, self.unit.rstrip('s'))}"
            f" in {_human_time(elapsed)}"
        )


def add_logging_args(parser) -> None:
    """Add the standard logging flags to an argparse parser."""
    group = parser.add_argument_group('logging')
    group.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )
    group.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging (shortcut for --log-level DEBUG)'
    )
    group.add_argument(
        '--quiet',
        action='store_true',
        help='Only log warnings and errors (shortcut for --log-level WARNING)'
    )
    group.add_argument(
        '--log-file',
        type=str,
        metavar='PATH',
        help='Also write logs to file'
    )


def resolve_log_level(args) -> str:
    """Priority: --debug > --quiet > --log-level."""
    if getattr(args, 'debug', False):
        return 'DEBUG'
    if getattr(args, 'quiet', False):
        return 'WARNING'
    return getattr(args, 'log_level', 'INFO')


class RunSummary:
    """
    Collect metrics during a run and log a summary at the end.

    Usage:
        summary = RunSummary("Playlist")
        summary.add("discovered", 120)
        summary.log()
    """

    def __init__(self, title: str, logger: Optional[logging.Logger] = None):
        self.title = title
        self.logger = logger or logging.getLogger(__name__)
        self.metrics: dict = {}
        self.start_time = time.perf_counter()

    def add(self, key: str, value: Union[int, float, str]) -> None:
        self.metrics[key] = value

    def log(self, level: int = logging.INFO) -> None:
        elapsed = time.perf_counter() - self.start_time
        self.logger.log(level, "=" * 60)
        self.logger.log(level, f"{self.title.upper()} SUMMARY")
        for key, value in self.metrics.items():
            display_key = key.replace('_', ' ').title()
            if isinstance(value, float):
                self.logger.log(level, f"  {display_key}: {value:.3f}")
            else:
                self.logger.log(level, f"  {display_key}: {value}")
        self.logger.log(level, f"  Total Time: {_human_time(elapsed)}")
        self.logger.log(level, "=" * 60)
