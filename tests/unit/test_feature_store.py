"""
Tests for the analysis cache.

Covers:
- Loading: missing file, corrupt content, malformed records
- Merge precedence and path uniqueness
- Persist/load round trip
- Failed writes leave the previous cache untouched
"""
import json
import os

import pytest

import seed_playlist.feature_store as feature_store
from seed_playlist.errors import CacheCorruptError, CacheWriteError
from seed_playlist.feature_store import cached_paths, load_songs, merge_songs, persist_songs
from seed_playlist.song import Song


def _song(path, *features):
    return Song(path=path, features=features)


class TestLoadSongs:

    def test_missing_file_is_empty(self, tmp_path):
        assert load_songs(tmp_path / "nope.json") == []

    def test_loads_records_in_file_order(self, tmp_path):
        cache = tmp_path / "analysis.json"
        cache.write_text(json.dumps([
            {"path": "/m/b.mp3", "analysis": [0.5, 0.25]},
            {"path": "/m/a.mp3", "analysis": [-1.0, 1.0]},
        ]))
        songs = load_songs(cache)
        assert [s.path for s in songs] == ["/m/b.mp3", "/m/a.mp3"]
        assert songs[1].features == (-1.0, 1.0)

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{not json",
            '{"path": "/m/a.mp3", "analysis": [1]}',
            '["just a string"]',
            '[{"path": "/m/a.mp3"}]',
            '[{"path": "/m/a.mp3", "analysis": ["x"]}]',
            '[{"path": "/m/a.mp3", "analysis": []}]',
            '[{"path": "/m/a.mp3", "analysis": [NaN]}]',
            '[{"path": "/m/a.mp3", "analysis": [0.1, Infinity]}]',
            '[{"path": "/m/a.mp3", "analysis": [true]}]',
            '[{"path": "/m/a.mp3", "analysis": ["1.5"]}]',
            '[{"path": "/m/a.mp3", "analysis": [0.1, 0.2]}, {"path": "/m/b.mp3", "analysis": [0.1, 0.2, 0.3]}]',
        ],
    )
    def test_corrupt_cache_raises(self, tmp_path, content):
        cache = tmp_path / "analysis.json"
        cache.write_text(content)
        with pytest.raises(CacheCorruptError):
            load_songs(cache)

    def test_directory_in_place_of_cache_is_corrupt(self, tmp_path):
        cache = tmp_path / "analysis.json"
        cache.mkdir()
        with pytest.raises(CacheCorruptError):
            load_songs(cache)


class TestMergeSongs:

    def test_new_analysis_overrides_cached_vector(self):
        existing = [_song("/m/a.mp3", 0.0), _song("/m/b.mp3", 0.0)]
        new = [_song("/m/b.mp3", 1.0), _song("/m/c.mp3", 2.0)]

        merged = merge_songs(existing, new)

        by_path = {s.path: s for s in merged}
        assert len(merged) == len(by_path) == 3
        assert by_path["/m/b.mp3"].features == (1.0,)
        assert by_path["/m/c.mp3"].features == (2.0,)
        assert by_path["/m/a.mp3"].features == (0.0,)

    def test_new_songs_come_first(self):
        merged = merge_songs([_song("/m/a.mp3", 0.0)], [_song("/m/z.mp3", 1.0)])
        assert [s.path for s in merged] == ["/m/z.mp3", "/m/a.mp3"]

    def test_repeats_inside_inputs_collapse(self):
        existing = [_song("/m/a.mp3", 0.0), _song("/m/a.mp3", 9.0)]
        new = [_song("/m/b.mp3", 1.0), _song("/m/b.mp3", 8.0)]
        merged = merge_songs(existing, new)
        assert [(s.path, s.features) for s in merged] == [("/m/b.mp3", (1.0,)), ("/m/a.mp3", (0.0,))]

    def test_merge_with_empty_sides(self):
        songs = [_song("/m/a.mp3", 0.0)]
        assert merge_songs([], songs) == songs
        assert merge_songs(songs, []) == songs
        assert merge_songs([], []) == []

    def test_cached_paths(self):
        assert cached_paths([_song("/m/a.mp3", 0.0), _song("/m/b.mp3", 0.0)]) == {"/m/a.mp3", "/m/b.mp3"}


class TestPersistSongs:

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_round_trip(self, tmp_path, count):
        cache = tmp_path / "analysis.json"
        songs = [_song(f"/m/{i}.mp3", i / 3, -i / 7, 1e-9 * i) for i in range(count)]

        persist_songs(songs, cache)
        loaded = load_songs(cache)

        assert {(s.path, s.features) for s in loaded} == {(s.path, s.features) for s in songs}

    def test_overwrites_instead_of_appending(self, tmp_path):
        cache = tmp_path / "analysis.json"
        persist_songs([_song("/m/a.mp3", 0.0), _song("/m/b.mp3", 0.0)], cache)
        persist_songs([_song("/m/c.mp3", 0.0)], cache)
        assert [s.path for s in load_songs(cache)] == ["/m/c.mp3"]

    def test_creates_parent_directories(self, tmp_path):
        cache = tmp_path / "deep" / "er" / "analysis.json"
        persist_songs([_song("/m/a.mp3", 0.0)], cache)
        assert cache.exists()

    def test_failed_replace_keeps_previous_cache(self, tmp_path, monkeypatch):
        cache = tmp_path / "analysis.json"
        persist_songs([_song("/m/a.mp3", 0.5)], cache)
        before = cache.read_text()

        def _boom(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(feature_store.os, "replace", _boom)
        with pytest.raises(CacheWriteError):
            persist_songs([_song("/m/b.mp3", 1.0)], cache)

        assert cache.read_text() == before
        assert os.listdir(tmp_path) == ["analysis.json"]

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(CacheWriteError):
            persist_songs([_song("/m/a.mp3", 0.0)], blocker / "analysis.json")
