"""
Song record shared by the cache, the analyzer and the playlist builder.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

import numpy as np


@dataclass(frozen=True)
class Song:
    """
    An analyzed audio file.

    Identity is the canonical path: two files that happen to produce the
    same feature vector are still different songs, and a re-analyzed file
    replaces its older record.

    Attributes:
        path: Canonical absolute path of the file
        features: Feature vector as a tuple of floats
    """
    path: str
    features: Tuple[float, ...] = field(compare=False)

    def __post_init__(self):
        # Normalize any iterable (list, ndarray) to a tuple of plain floats
        object.__setattr__(self, 'features', tuple(float(v) for v in self.features))

    @property
    def vector(self) -> np.ndarray:
        return np.asarray(self.features, dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'analysis': list(self.features),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Song':
        """
        Build a Song from a cache record.

        Raises:
            KeyError, TypeError, ValueError: if the record is malformed, the
                analysis is empty, or a value is not a finite number
        """
        path = d['path']
        if not isinstance(path, str) or not path:
            raise ValueError(f"Invalid song path: {path!r}")
        analysis = d['analysis']
        if isinstance(analysis, (str, bytes)) or not isinstance(analysis, Iterable):
            raise TypeError(f"Invalid analysis for {path}: {type(analysis).__name__}")
        analysis = list(analysis)
        if not analysis:
            raise ValueError(f"Empty analysis for {path}")
        for value in analysis:
            # bool is an int subclass but never a feature value
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"Invalid feature value for {path}: {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Non-finite feature value for {path}: {value!r}")
        return cls(path=path, features=analysis)

    @classmethod
    def from_vector(cls, path: str, vector: np.ndarray) -> 'Song':
        return cls(path=path, features=np.asarray(vector, dtype=np.float64).ravel().tolist())
