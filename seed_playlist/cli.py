"""
seed-playlist command line

Analyzes a folder recursively and makes a playlist starting from a given song.

Usage:
    seed-playlist ~/Music ~/Music/artist/song.flac
    seed-playlist -o mix.m3u --format m3u ~/Music ~/Music/artist/song.flac
    seed-playlist -a ~/.cache/analysis.json --workers 4 ~/Music song.mp3
"""
import argparse
import logging
import sys
from typing import List, Optional

from seed_playlist import __version__
from seed_playlist.config import DEFAULT_ANALYSIS_FILE, resolve_config
from seed_playlist.distance import DISTANCES
from seed_playlist.errors import PlaylistError
from seed_playlist.exporter import OUTPUT_FORMATS
from seed_playlist.logging_utils import add_logging_args, configure_logging, resolve_log_level
from seed_playlist.ordering import ORDERING_METHODS
from seed_playlist.pipeline import build_playlist

logger = logging.getLogger('seed_playlist')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='seed-playlist',
        description='Analyze a folder and make a playlist from a target song.',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('folder', metavar='FOLDER', help='Folder containing some songs')
    parser.add_argument('first_song', metavar='FIRST-SONG',
                        help='Song to start from (can be outside of FOLDER)')
    parser.add_argument('-o', '--output-playlist', metavar='PLAYLIST.M3U',
                        help='Write the playlist to a file instead of standard output')
    parser.add_argument('-a', '--analysis-file', metavar='ANALYSIS.JSON',
                        help='Reuse the analyses stored in this file and add newly analyzed songs to it '
                             f'(default: {DEFAULT_ANALYSIS_FILE})')
    parser.add_argument('--config', metavar='CONFIG.YAML',
                        help='YAML file with a playlist: section of defaults')
    parser.add_argument('--format', dest='output_format', choices=OUTPUT_FORMATS,
                        help='Playlist format (default: plain, one path per line)')
    parser.add_argument('--ordering', choices=ORDERING_METHODS,
                        help='song_to_song chains nearest neighbours (default); '
                             'closest_to_seed sorts by distance to the first song')
    parser.add_argument('--distance', choices=sorted(DISTANCES),
                        help='Distance between feature vectors (default: euclidean)')
    parser.add_argument('--threshold', dest='dedup_threshold', type=float, metavar='DIST',
                        help='Drop songs closer than DIST to the previous kept song')
    parser.add_argument('--no-dedup', dest='dedup', action='store_false', default=None,
                        help='Keep near-duplicate songs')
    parser.add_argument('--workers', type=int, help='Number of parallel analysis workers')
    add_logging_args(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = resolve_log_level(args)
    configure_logging(level=log_level, log_file=args.log_file)

    try:
        config = resolve_config(
            folder=args.folder,
            seed=args.first_song,
            config_path=args.config,
            analysis_file=args.analysis_file,
            output_playlist=args.output_playlist,
            output_format=args.output_format,
            ordering=args.ordering,
            distance=args.distance,
            dedup=args.dedup,
            dedup_threshold=args.dedup_threshold,
            workers=args.workers,
            verbose_progress=log_level == 'DEBUG',
        )
        build_playlist(config)
    except PlaylistError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
