"""
motiontrack - Moving Feature Point Tracker
==========================================

Follows feature points through video frames with pyramidal Lucas-Kanade
optical flow, seeding new points when too few remain and dropping points
that are lost or stand still.

Main modules:
- motiontrack.tracking: Tracking engine, track lifecycle policies, overlay
- motiontrack.core: Configuration, errors, frame sources
- motiontrack.outputs: Output sinks (video, image sequence, CSV)
- motiontrack.pipeline: Video processor loop

Quick start:
    >>> from motiontrack import FeatureTracker, VideoProcessor, VideoReader
    >>> with VideoReader("input.mp4") as reader:
    ...     VideoProcessor(reader, FeatureTracker()).run()
"""

__version__ = "0.1.0"

# Convenience imports
from motiontrack.tracking import FeatureTracker
from motiontrack.core.video import VideoReader, ImageSequenceReader
from motiontrack.core.config import Config, TrackerConfig
from motiontrack.outputs import OutputManager, OutputSpec
from motiontrack.pipeline import VideoProcessor

__all__ = [
    "__version__",
    "FeatureTracker",
    "VideoReader",
    "ImageSequenceReader",
    "Config",
    "TrackerConfig",
    "OutputManager",
    "OutputSpec",
    "VideoProcessor",
]
