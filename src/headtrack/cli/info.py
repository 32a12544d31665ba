"""``headtrack info`` command."""

import argparse

from headtrack.detect import default_cascade_path, load_cascade
from headtrack.facetracker import FaceTrackingStateMachine
from headtrack.paths import get_models_dir
from headtrack.steps import get_processing_steps


def cmd_info(args: argparse.Namespace) -> None:
    """Handle ``headtrack info``."""
    print(f"Models directory: {get_models_dir()}")
    print(f"Cascade file:     {args.cascade or default_cascade_path()}")

    cascade = load_cascade(args.cascade)
    print(f"Cascade window:   {cascade.width}x{cascade.height}")
    print(f"Stages:           {len(cascade.stages)}")
    print(f"Features:         {cascade.feature_count}")
    if args.verbose:
        for j, stage in enumerate(cascade.stages):
            print(f"  stage {j:2d}: {stage.count:3d} features, threshold {stage.threshold:.4f}")

    print("Processing steps:")
    for step in get_processing_steps(FaceTrackingStateMachine):
        print(f"  {step}")
