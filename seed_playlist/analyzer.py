"""
Librosa Analyzer - Turns an audio file into a fixed-length feature vector
"""
import logging
from pathlib import Path
from typing import List, Tuple

import librosa
import numpy as np

from seed_playlist.errors import AnalysisError
from seed_playlist.song import Song

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 22050

# (name, low, high) in vector order. Raw values are mapped linearly from
# [low, high] onto [-1, 1] and clipped, so no single feature dominates the
# euclidean distance.
_FEATURE_RANGES: List[Tuple[str, float, float]] = [
    ('tempo', 0.0, 206.0),
    ('zero_crossing_rate', 0.0, 0.5),
    ('spectral_centroid_mean', 0.0, 11025.0),
    ('spectral_centroid_std', 0.0, 5512.5),
    ('spectral_rolloff_mean', 0.0, 11025.0),
    ('spectral_rolloff_std', 0.0, 5512.5),
    ('spectral_flatness_mean', 0.0, 1.0),
    ('spectral_flatness_std', 0.0, 0.5),
    ('loudness_mean', -90.0, 0.0),
    ('loudness_std', 0.0, 30.0),
] + [(f'chroma_{i}', 0.0, 1.0) for i in range(12)]

FEATURE_NAMES = [name for name, _, _ in _FEATURE_RANGES]
FEATURE_DIM = len(FEATURE_NAMES)


def normalize_features(raw: np.ndarray) -> np.ndarray:
    """Map raw feature values onto [-1, 1] using the fixed ranges."""
    raw = np.asarray(raw, dtype=np.float64)
    if raw.shape != (FEATURE_DIM,):
        raise ValueError(f"Expected {FEATURE_DIM} raw features, got shape {raw.shape}")
    low = np.array([r[1] for r in _FEATURE_RANGES])
    high = np.array([r[2] for r in _FEATURE_RANGES])
    scaled = 2.0 * (raw - low) / (high - low) - 1.0
    return np.clip(scaled, -1.0, 1.0)


class LibrosaAnalyzer:
    """Extracts similarity features locally using Librosa"""

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE):
        self.sample_rate = sample_rate
        logger.debug(f"Initialized Librosa analyzer (sr={sample_rate})")

    def _extract_raw_features(self, y: np.ndarray, sr: int) -> np.ndarray:
        # Rhythm
        tempo, _ = librosa.beat.beat_track(y=y, sr=sr)
        tempo = float(np.atleast_1d(tempo)[0])

        # Percussiveness
        zcr = librosa.feature.zero_crossing_rate(y)[0]

        # Spectral shape
        centroid = librosa.feature.spectral_centroid(y=y, sr=sr)[0]
        rolloff = librosa.feature.spectral_rolloff(y=y, sr=sr)[0]
        flatness = librosa.feature.spectral_flatness(y=y)[0]

        # Loudness in dB relative to full scale
        rms = librosa.feature.rms(y=y)[0]
        loudness = librosa.amplitude_to_db(rms, ref=1.0)

        # Harmony
        chroma = librosa.feature.chroma_stft(y=y, sr=sr)

        return np.concatenate([
            [
                tempo,
                float(np.mean(zcr)),
                float(np.mean(centroid)),
                float(np.std(centroid)),
                float(np.mean(rolloff)),
                float(np.std(rolloff)),
                float(np.mean(flatness)),
                float(np.std(flatness)),
                float(np.mean(loudness)),
                float(np.std(loudness)),
            ],
            np.mean(chroma, axis=1),
        ])

    def analyze(self, file_path: str) -> Song:
        """
        Analyze one file.

        Args:
            file_path: Canonical path to an audio file

        Returns:
            Song carrying the normalized feature vector

        Raises:
            AnalysisError: file missing, undecodable, silent or empty
        """
        if not Path(file_path).is_file():
            raise AnalysisError(file_path, "file not found")

        try:
            y, sr = librosa.load(file_path, sr=self.sample_rate, mono=True)
        except Exception as e:
            raise AnalysisError(file_path, f"decoding failed: {e}") from e

        if y.size == 0:
            raise AnalysisError(file_path, "no audio samples")

        try:
            raw = self._extract_raw_features(y, sr)
        except Exception as e:
            raise AnalysisError(file_path, f"feature extraction failed: {e}") from e

        if not np.all(np.isfinite(raw)):
            raise AnalysisError(file_path, "non-finite features")

        logger.debug(f"Extracted features from {Path(file_path).name}")
        return Song.from_vector(file_path, normalize_features(raw))


def analyze_song(file_path: str, sample_rate: int = DEFAULT_SAMPLE_RATE) -> Song:
    """Worker entry point: analyze a single file with a fresh analyzer."""
    return LibrosaAnalyzer(sample_rate=sample_rate).analyze(file_path)
