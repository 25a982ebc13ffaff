"""
Configuration - playlist run settings from YAML, environment and CLI

Precedence (highest first): explicit overrides (CLI flags), environment
variables, the YAML file's `playlist:` section, dataclass defaults.

Example config.yaml:

    playlist:
      analysis_file: ~/.cache/seed-playlist/analysis.json
      ordering: song_to_song
      distance: euclidean
      dedup_threshold: 0.05
      workers: 4
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from seed_playlist.analyzer import DEFAULT_SAMPLE_RATE
from seed_playlist.distance import DISTANCES
from seed_playlist.errors import ConfigError
from seed_playlist.exporter import OUTPUT_FORMATS
from seed_playlist.ordering import ORDERING_METHODS

DEFAULT_ANALYSIS_FILE = "/tmp/analysis.json"

ENV_ANALYSIS_FILE = "SEED_PLAYLIST_ANALYSIS_FILE"
ENV_WORKERS = "SEED_PLAYLIST_WORKERS"


@dataclass(frozen=True)
class PlaylistConfig:
    """Everything one playlist run needs."""
    folder: str
    seed: str
    analysis_file: str = DEFAULT_ANALYSIS_FILE
    output_playlist: Optional[str] = None
    output_format: str = "plain"
    ordering: str = "song_to_song"
    distance: str = "euclidean"
    dedup: bool = True
    dedup_threshold: Optional[float] = None
    workers: Optional[int] = None
    use_processes: bool = True
    sample_rate: int = DEFAULT_SAMPLE_RATE
    verbose_progress: bool = False

    def validate(self) -> PlaylistConfig:
        """Return self, or raise ConfigError on the first invalid field."""
        if not self.folder:
            raise ConfigError("folder is required")
        if not self.seed:
            raise ConfigError("seed song is required")
        if not self.analysis_file:
            raise ConfigError("analysis_file must not be empty")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, got '{self.output_format}'")
        if self.ordering not in ORDERING_METHODS:
            raise ConfigError(f"ordering must be one of {', '.join(ORDERING_METHODS)}, got '{self.ordering}'")
        if self.distance not in DISTANCES:
            raise ConfigError(f"distance must be one of {', '.join(sorted(DISTANCES))}, got '{self.distance}'")
        if self.dedup_threshold is not None and self.dedup_threshold < 0:
            raise ConfigError(f"dedup_threshold must be >= 0, got {self.dedup_threshold}")
        if self.workers is not None and self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        if self.sample_rate <= 0:
            raise ConfigError(f"sample_rate must be positive, got {self.sample_rate}")
        return self


_FIELD_NAMES = {f.name for f in fields(PlaylistConfig)}


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read the `playlist:` section of a YAML config file.

    Raises:
        ConfigError: file missing, unparsable, or holding unknown keys
    """
    path = Path(config_path).expanduser()
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    section = data.get('playlist') or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Configuration section 'playlist' in {path} must be a mapping")

    unknown = sorted(set(section) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown configuration fields in {path}: {', '.join(unknown)}")

    values = dict(section)
    for key in ('analysis_file', 'output_playlist', 'folder', 'seed'):
        if isinstance(values.get(key), str):
            values[key] = os.path.expanduser(values[key])
    return values


def env_overrides() -> Dict[str, Any]:
    """Settings taken from environment variables."""
    values: Dict[str, Any] = {}
    analysis_file = os.getenv(ENV_ANALYSIS_FILE)
    if analysis_file:
        values['analysis_file'] = os.path.expanduser(analysis_file)
    workers = os.getenv(ENV_WORKERS)
    if workers:
        try:
            values['workers'] = int(workers)
        except ValueError:
            raise ConfigError(f"{ENV_WORKERS} must be an integer, got '{workers}'") from None
    return values


def resolve_config(
    folder: Optional[str] = None,
    seed: Optional[str] = None,
    config_path: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> PlaylistConfig:
    """
    Build a validated PlaylistConfig.

    Args:
        folder: Folder to scan (overrides the file)
        seed: Seed song (overrides the file)
        config_path: Optional YAML file
        **overrides: Explicit values; None means "not given"

    Raises:
        ConfigError: on invalid files or values
    """
    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(load_config_file(config_path))
    values.update(env_overrides())

    unknown = sorted(set(overrides) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown configuration fields: {', '.join(unknown)}")
    values.update({k: v for k, v in overrides.items() if v is not None})
    if folder is not None:
        values['folder'] = folder
    if seed is not None:
        values['seed'] = seed

    try:
        return PlaylistConfig(**{'folder': '', 'seed': '', **values}).validate()
    except TypeError as e:
        # Wrong value types from YAML, e.g. workers: "four"
        raise ConfigError(f"Invalid configuration: {e}") from e
