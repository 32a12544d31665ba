"""CLI for headtrack: ``headtrack track`` and ``headtrack info``."""

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="headtrack",
        description="Face detection and head tracking from video",
    )
    sub = parser.add_subparsers(dest="command")

    # headtrack track
    track_p = sub.add_parser("track", help="Track a head in a video file or camera")
    track_p.add_argument(
        "--input", "-i",
        required=True,
        help="Input source: file path or camera index (int)",
    )
    track_p.add_argument(
        "--cascade",
        default=None,
        help="Face cascade JSON (default: <models dir>/facecascade.json)",
    )
    track_p.add_argument(
        "--config", "-c",
        default=None,
        help="Tracker configuration YAML",
    )
    track_p.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after N frames",
    )
    track_p.add_argument(
        "--resolution",
        type=_parse_resolution,
        default="320x240",
        help="Resize frames to WxH before tracking, 'native' to keep (default: 320x240)",
    )
    track_p.add_argument(
        "--no-smoothing",
        action="store_true",
        help="Disable smoothing of tracked geometry",
    )
    track_p.add_argument(
        "--calc-angles",
        action="store_true",
        help="Recover face orientation while tracking",
    )
    track_p.add_argument(
        "--fov",
        type=float,
        default=None,
        help="Horizontal camera field of view in degrees (default: estimate)",
    )
    track_p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # headtrack info
    info_p = sub.add_parser("info", help="Show cascade and pipeline information")
    info_p.add_argument(
        "--cascade",
        default=None,
        help="Face cascade JSON (default: <models dir>/facecascade.json)",
    )
    info_p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    return parser


def _resolve_input(input_str: str):
    """Resolve --input to a source path or camera index."""
    try:
        return int(input_str)
    except ValueError:
        return input_str


def _parse_resolution(value: str):
    """Parse --resolution: WxH, or 'native' for None."""
    if value == "native":
        return None
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid resolution '{value}', expected WxH or 'native'")
    return width, height


def main(argv=None):
    """Entry point for ``headtrack`` CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from headtrack.errors import HeadtrackError

    try:
        if args.command == "track":
            from headtrack.cli.track import cmd_track
            cmd_track(args)
        elif args.command == "info":
            from headtrack.cli.info import cmd_info
            cmd_info(args)
    except (HeadtrackError, FileNotFoundError, IOError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
