"""
seed-playlist: similarity-ordered playlists from a local folder.

Analyzes the audio files under a folder (reusing a JSON cache of earlier
analyses), then chains songs by acoustic similarity starting from a seed.
"""

__version__ = "0.1.0"

from seed_playlist.errors import (
    AnalysisError,
    CacheCorruptError,
    CacheWriteError,
    ConfigError,
    InvalidRootError,
    PlaylistError,
    PlaylistWriteError,
    SeedNotFoundError,
)
from seed_playlist.song import Song

__all__ = [
    'AnalysisError',
    'CacheCorruptError',
    'CacheWriteError',
    'ConfigError',
    'InvalidRootError',
    'PlaylistError',
    'PlaylistWriteError',
    'SeedNotFoundError',
    'Song',
]
