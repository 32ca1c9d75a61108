"""
motiontrack Command Line Interface

Usage:
    motiontrack <command> [options]

Commands:
    track       Track moving features in a video, camera or image sequence
    config      Write a configuration file with the default settings

Examples:
    motiontrack track input.mp4 -out video=filename=tracked.avi
    motiontrack track 0 --delay 30
    motiontrack track frames/*.png -out images=prefix=out/frame_:digits=4 --no-display
    motiontrack track input.mp4 -c motiontrack.json -out csv -q
    motiontrack config -o motiontrack.json
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from motiontrack import __version__
from motiontrack.core.errors import MotionTrackError


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='motiontrack',
        description='Moving feature point tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'motiontrack {__version__}',
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Track command
    track_parser = subparsers.add_parser(
        'track',
        help='Track moving features',
    )
    track_parser.add_argument(
        'input',
        nargs='+',
        help='Video file, camera index, or a list of image files',
    )
    track_parser.add_argument(
        '-out', '--output',
        action='append',
        dest='outputs',
        metavar='SPEC',
        help='Output specification (can be used multiple times)',
    )
    track_parser.add_argument(
        '-c', '--config',
        default=None,
        help='JSON configuration file',
    )
    track_parser.add_argument(
        '-fs', '--first-frame',
        type=int,
        default=1,
        help='First frame to process (default: 1)',
    )
    track_parser.add_argument(
        '-fe', '--frame-end',
        type=int,
        default=None,
        help='Last frame to process (default: end of video)',
    )
    track_parser.add_argument(
        '--fps',
        type=float,
        default=25.0,
        help='Frame rate of an image sequence input (default: 25)',
    )
    track_parser.add_argument(
        '--stop-at',
        type=int,
        default=None,
        help='Stop after this many frames',
    )
    track_parser.add_argument(
        '--delay',
        type=int,
        default=None,
        help='Display delay per frame in ms (default: from frame rate)',
    )
    track_parser.add_argument(
        '--no-display',
        action='store_true',
        help='Disable live display',
    )
    track_parser.add_argument(
        '--show-input',
        action='store_true',
        help='Also display the unprocessed input',
    )
    track_parser.add_argument(
        '--no-process',
        action='store_true',
        help='Pass frames through without tracking',
    )
    track_parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress progress output',
    )
    track_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Write a default configuration file',
    )
    config_parser.add_argument(
        '-o', '--output',
        default='motiontrack.json',
        help='Configuration file (default: motiontrack.json)',
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == 'track':
        return run_track(args)
    elif args.command == 'config':
        return run_config(args)
    else:
        parser.print_help()
        return 1


class ProgressProcessor:
    """Wraps a FeatureTracker and prints its per-frame statistics."""

    def __init__(self, tracker):
        self.tracker = tracker

    def process_frame(self, frame_num: int, frame: np.ndarray) -> np.ndarray:
        output = self.tracker.process_frame(frame_num, frame)
        stats = self.tracker.last_stats
        print(
            f"\rFrame {frame_num}: {stats.tracked} tracked, "
            f"{stats.lost} lost, {stats.added} added",
            end='',
        )
        return output

    def tracking_data(self) -> dict:
        return self.tracker.tracking_data()


def open_source(inputs: list[str], first_frame: int, frame_end: int | None, fps: float):
    """Build a frame source from the command line inputs."""
    from motiontrack.core.video import VideoReader, ImageSequenceReader

    if len(inputs) > 1:
        return ImageSequenceReader(inputs, fps=fps).open()
    if inputs[0].isdigit():
        return VideoReader(int(inputs[0])).open()
    return VideoReader(inputs[0], first_frame, frame_end).open()


def run_track(args) -> int:
    """Run feature tracking command."""
    from motiontrack.core.config import Config, load_config, apply_env_overrides
    from motiontrack.outputs import parse_output_specs
    from motiontrack.pipeline import VideoProcessor
    from motiontrack.tracking import FeatureTracker

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else Config()
        apply_env_overrides(config)

        proc_cfg = config.processor
        if args.no_display:
            proc_cfg.display = False
        if args.show_input:
            proc_cfg.input_window_name = "Input"
        if args.no_process:
            proc_cfg.call_process = False
        if args.stop_at is not None:
            proc_cfg.stop_at_frame = args.stop_at

        source = open_source(args.input, args.first_frame, args.frame_end, args.fps)
        props = source.properties

        if args.delay is not None:
            proc_cfg.delay_ms = args.delay
        elif proc_cfg.delay_ms == 0 and props.fps > 0:
            proc_cfg.delay_ms = int(1000 / props.fps)

        label = args.input[0] if len(args.input) == 1 else str(Path(args.input[0]).parent / "sequence")
        print(f"Tracking features in {label}")
        print(
            f"{props.width}x{props.height} @ {props.fps:.2f} fps, codec {props.fourcc}"
        )

        output_manager = None
        if args.outputs:
            output_manager = parse_output_specs(
                args.outputs, f"camera{label}" if label.isdigit() else label
            )

        tracker = FeatureTracker(config.tracker)
        processor = tracker if args.quiet else ProgressProcessor(tracker)

        try:
            summary = VideoProcessor(source, processor, output_manager, proc_cfg).run()
        finally:
            source.close()

    except (MotionTrackError, FileNotFoundError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print(f"\nDone! {summary.frames} frames processed", end='')
    if summary.rejected:
        print(f", {summary.rejected} frames lost by outputs", end='')
    print()
    if output_manager:
        for path in output_manager.get_output_paths()[:10]:
            print(f"  {path}")
    return 0


def run_config(args) -> int:
    """Write an example configuration file."""
    from motiontrack.core.config import create_example_config
    create_example_config(args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
