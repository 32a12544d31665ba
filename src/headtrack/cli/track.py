"""``headtrack track`` command."""

import argparse
from dataclasses import replace

from headtrack.cli import _resolve_input
from headtrack.config import TrackerConfig
from headtrack.detect import load_cascade
from headtrack.events import CallbackSink, StatusEvent
from headtrack.sources import VideoCaptureSource
from headtrack.tracker import HeadTracker


def _print_face(face) -> None:
    print(
        f"  face   x={face.x:7.1f} y={face.y:7.1f} "
        f"w={face.width:6.1f} h={face.height:6.1f} angle={face.angle:5.2f}"
    )


def _print_position(position) -> None:
    print(f"  head   x={position.x:6.1f}cm y={position.y:6.1f}cm z={position.z:6.1f}cm")


def _print_status(event: StatusEvent) -> None:
    print(f"[{event.status.value}] {event.message}")


def build_config(args: argparse.Namespace) -> TrackerConfig:
    """Tracker config from ``--config`` with command line overrides applied."""
    config = TrackerConfig.from_yaml(args.config) if args.config else TrackerConfig()
    if args.cascade:
        config = replace(config, cascade_path=args.cascade)
    if args.no_smoothing:
        config = replace(config, smoothing=False)
    if args.calc_angles:
        config = replace(config, face=replace(config.face, calc_angles=True))
    if args.fov is not None:
        config = replace(config, head=replace(config.head, fov=args.fov))
    return config


def cmd_track(args: argparse.Namespace) -> None:
    """Handle ``headtrack track``."""
    config = build_config(args)
    cascade = load_cascade(config.cascade_path)
    sink = CallbackSink(
        on_face=_print_face,
        on_head_position=_print_position,
        on_status=_print_status,
    )

    with VideoCaptureSource(_resolve_input(args.input), args.resolution) as source:
        tracker = HeadTracker(source, cascade, config, sink=sink)
        frames = tracker.run(max_frames=args.max_frames)

    fov = f"{tracker.fov:.1f} deg" if tracker.fov is not None else "not calibrated"
    print(f"\nDone: {frames} frames, field of view {fov}")
