"""
Exception types for the playlist pipeline.

Fatal errors abort the run and make the CLI exit non-zero. AnalysisError is
the only per-file error: the pipeline logs it and carries on, except for the
seed song which must be analyzed for a playlist to exist at all.
"""


class PlaylistError(Exception):
    """Base class for all errors raised by seed_playlist."""


class ConfigError(PlaylistError):
    """Configuration file or values are invalid."""


class InvalidRootError(PlaylistError):
    """Discovery root does not exist or is not a directory."""


class SeedNotFoundError(PlaylistError):
    """The seed song path cannot be resolved."""


class CacheCorruptError(PlaylistError):
    """Analysis cache exists but cannot be parsed."""


class CacheWriteError(PlaylistError):
    """Writing the analysis cache failed."""


class PlaylistWriteError(PlaylistError):
    """Writing the playlist output failed."""


class AnalysisError(PlaylistError):
    """Decoding or feature extraction failed for a single file.

    Both arguments are kept in ``args`` so the error survives pickling
    across worker processes.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"
