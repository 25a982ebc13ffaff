"""
Audio File Discovery
====================
Recursively collects audio files under a folder.

- Follows directory symlinks but never enters the same real directory twice
- Unreadable directories and files that cannot be resolved are logged and skipped
- Audio detection goes through mimetypes (top-level type must be "audio")
"""
import logging
import mimetypes
import os
from pathlib import Path
from typing import Callable, Optional, Set, Union

from seed_playlist.errors import InvalidRootError

logger = logging.getLogger(__name__)

# Extensions the library scanner treats as audio. Registered explicitly:
# some platform tables lack them or map .ogg to application/ogg
_EXTRA_AUDIO_TYPES = {
    '.mp3': 'audio/mpeg',
    '.wav': 'audio/x-wav',
    '.flac': 'audio/flac',
    '.opus': 'audio/opus',
    '.ogg': 'audio/ogg',
    '.m4a': 'audio/mp4',
    '.wma': 'audio/x-ms-wma',
    '.aac': 'audio/aac',
}

for _ext, _mime in _EXTRA_AUDIO_TYPES.items():
    mimetypes.add_type(_mime, _ext)


def is_audio_file(path: Union[str, Path]) -> bool:
    """Return True when the guessed MIME type of path is audio/*."""
    mime, _ = mimetypes.guess_type(str(path))
    if not mime:
        return False
    return mime.split('/', 1)[0] == 'audio'


def discover_audio_files(
    root: Union[str, Path],
    is_audio: Optional[Callable[[str], bool]] = None,
) -> Set[str]:
    """
    Find audio files below root.

    Args:
        root: Folder to scan
        is_audio: Type check applied to each canonical path (defaults to is_audio_file)

    Returns:
        Set of canonical absolute paths

    Raises:
        InvalidRootError: root does not exist or is not a directory
    """
    if is_audio is None:
        is_audio = is_audio_file

    root_path = Path(root)
    try:
        real_root = root_path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Folder not found: {root_path} ({e})") from e
    if not real_root.is_dir():
        raise InvalidRootError(f"Not a directory: {root_path}")
    if not os.access(real_root, os.R_OK | os.X_OK):
        raise InvalidRootError(f"Folder is not readable: {root_path}")

    def _on_walk_error(err: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {err.filename}: {err.strerror}")

    found: Set[str] = set()
    visited_dirs: Set[str] = set()
    skipped = 0

    for dirpath, dirnames, filenames in os.walk(real_root, onerror=_on_walk_error, followlinks=True):
        real_dir = os.path.realpath(dirpath)
        if real_dir in visited_dirs:
            logger.debug(f"Already visited {real_dir}; not descending again")
            dirnames[:] = []
            continue
        visited_dirs.add(real_dir)

        # Sorted traversal keeps logs stable between runs
        dirnames.sort()
        for name in sorted(filenames):
            entry = Path(dirpath) / name
            try:
                resolved = entry.resolve(strict=True)
            except (OSError, RuntimeError) as e:
                logger.warning(f"Cannot resolve {entry}: {e}")
                skipped += 1
                continue
            if not resolved.is_file():
                continue
            resolved_str = str(resolved)
            if is_audio(resolved_str):
                found.add(resolved_str)

    if skipped:
        logger.info(f"Skipped {skipped} unresolvable entries under {real_root}")
    logger.info(f"Discovered {len(found)} audio files under {real_root}")
    return found
