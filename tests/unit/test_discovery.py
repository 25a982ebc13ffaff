import os
from pathlib import Path

import pytest

from seed_playlist.discovery import discover_audio_files, is_audio_file
from seed_playlist.errors import InvalidRootError


def test_finds_audio_files_only(music_dir):
    found = discover_audio_files(music_dir)
    assert found == {str(music_dir / name) for name in ("a.mp3", "b.mp3", "c.flac")}


def test_recurses_into_subfolders(music_dir):
    nested = music_dir / "Artist" / "Album"
    nested.mkdir(parents=True)
    (nested / "01 - track.ogg").write_bytes(b"\x00")

    found = discover_audio_files(music_dir)

    assert str(nested / "01 - track.ogg") in found
    assert len(found) == 4


def test_paths_are_canonical_and_absolute(music_dir, monkeypatch):
    monkeypatch.chdir(music_dir.parent)
    found = discover_audio_files(Path("music") / ".." / "music")
    assert all(os.path.isabs(p) for p in found)
    assert str(music_dir / "a.mp3") in found


def test_symlink_cycle_terminates(music_dir):
    os.symlink(music_dir, music_dir / "loop", target_is_directory=True)
    found = discover_audio_files(music_dir)
    assert len(found) == 3


def test_symlinked_file_resolves_to_target(music_dir, tmp_path):
    outside = tmp_path / "elsewhere"
    outside.mkdir()
    target = outside / "linked.mp3"
    target.write_bytes(b"\x00")
    os.symlink(target, music_dir / "link.mp3")

    found = discover_audio_files(music_dir)

    assert str(target.resolve()) in found
    assert str(music_dir / "link.mp3") not in found


def test_broken_symlink_is_skipped(music_dir, caplog):
    os.symlink(music_dir / "missing.mp3", music_dir / "dead.mp3")
    found = discover_audio_files(music_dir)
    assert len(found) == 3
    assert any("dead.mp3" in rec.getMessage() for rec in caplog.records)


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions")
def test_unreadable_subfolder_is_skipped(music_dir):
    locked = music_dir / "locked"
    locked.mkdir()
    (locked / "hidden.mp3").write_bytes(b"\x00")
    locked.chmod(0)
    try:
        found = discover_audio_files(music_dir)
    finally:
        locked.chmod(0o755)
    assert len(found) == 3


def test_missing_root_raises(tmp_path):
    with pytest.raises(InvalidRootError):
        discover_audio_files(tmp_path / "does-not-exist")


def test_file_root_raises(music_dir):
    with pytest.raises(InvalidRootError):
        discover_audio_files(music_dir / "a.mp3")


def test_empty_folder(tmp_path):
    assert discover_audio_files(tmp_path) == set()


def test_custom_type_check(music_dir):
    found = discover_audio_files(music_dir, is_audio=lambda p: p.endswith(".txt"))
    assert found == {str(music_dir / "notes.txt")}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("song.mp3", True),
        ("song.flac", True),
        ("song.opus", True),
        ("song.ogg", True),
        ("song.m4a", True),
        ("song.wav", True),
        ("SONG.MP3", True),
        ("cover.jpg", False),
        ("notes.txt", False),
        ("no_extension", False),
    ],
)
def test_is_audio_file(name, expected):
    assert is_audio_file(name) is expected
