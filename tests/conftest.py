"""Test configuration and fixtures."""

import sys
import threading
from pathlib import Path
from typing import Dict, Iterable, Sequence

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from seed_playlist.errors import AnalysisError
from seed_playlist.song import Song


class FakeAnalyzer:
    """
    Stand-in for the librosa analyzer.

    Vectors are keyed by file name so tests don't depend on where tmp_path
    lives. Names listed in `failures` raise AnalysisError.
    """

    def __init__(self, vectors: Dict[str, Sequence[float]], failures: Iterable[str] = ()):
        self.vectors = dict(vectors)
        self.failures = set(failures)
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, path: str) -> Song:
        with self._lock:
            self.calls.append(path)
        name = Path(path).name
        if name in self.failures:
            raise AnalysisError(path, "corrupt stream")
        return Song(path=path, features=self.vectors[name])

    def called_names(self):
        return sorted(Path(p).name for p in self.calls)


def make_song(path: str, *features: float) -> Song:
    return Song(path=path, features=features)


@pytest.fixture()
def music_dir(tmp_path):
    """
    Folder with a few dummy audio files and some non-audio noise:

        music/a.mp3, music/b.mp3, music/c.flac
        music/notes.txt, music/cover.jpg
    """
    root = tmp_path / "music"
    root.mkdir()
    for name in ("a.mp3", "b.mp3", "c.flac"):
        (root / name).write_bytes(b"\x00" * 16)
    (root / "notes.txt").write_text("liner notes")
    (root / "cover.jpg").write_bytes(b"\xff\xd8")
    return root.resolve()


@pytest.fixture()
def fake_analyzer_cls():
    return FakeAnalyzer
