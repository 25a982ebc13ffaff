"""
Playlist Exporter - Writes the final playlist as plain text or M3U
"""
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union

from seed_playlist.errors import PlaylistWriteError
from seed_playlist.song import Song

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("plain", "m3u")


def format_playlist(songs: Sequence[Song], fmt: str = "plain") -> str:
    """
    Render the playlist.

    Args:
        songs: Songs in playlist order
        fmt: "plain" (one path per line) or "m3u" (extended M3U)

    Returns:
        Newline-joined playlist text without a trailing newline
    """
    if fmt == "plain":
        return "\n".join(song.path for song in songs)
    if fmt == "m3u":
        lines: List[str] = ['#EXTM3U']
        for song in songs:
            # Duration is unknown at this point; -1 per the extended M3U convention
            lines.append(f"#EXTINF:-1,{Path(song.path).stem}")
            lines.append(song.path)
        return "\n".join(lines)
    raise ValueError(f"Unknown playlist format '{fmt}' (choose from {', '.join(OUTPUT_FORMATS)})")


def write_playlist(
    songs: Sequence[Song],
    output: Optional[Union[str, Path]] = None,
    fmt: str = "plain",
    stream: Optional[TextIO] = None,
) -> Optional[str]:
    """
    Write the playlist to a file, or to stdout when no file is given.

    Args:
        songs: Songs in playlist order
        output: Destination file (replaced atomically)
        fmt: Output format, see format_playlist
        stream: Text stream used when output is None (default sys.stdout)

    Returns:
        Path of the written file, or None when written to the stream

    Raises:
        PlaylistWriteError: on filesystem failure
    """
    text = format_playlist(songs, fmt=fmt)

    if output is None:
        out = stream if stream is not None else sys.stdout
        out.write(text + "\n")
        out.flush()
        logger.info(f"Wrote {len(songs)} playlist entries to standard output")
        return None

    out_path = Path(output)
    tmp_name = None
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{out_path.name}.", suffix='.tmp', dir=str(out_path.parent))
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_name, out_path)
        tmp_name = None
    except OSError as e:
        raise PlaylistWriteError(f"Failed to write playlist {out_path}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug(f"Could not remove temporary playlist file {tmp_name}")

    logger.info(f"Exported {len(songs)} songs to: {out_path}")
    return str(out_path)
