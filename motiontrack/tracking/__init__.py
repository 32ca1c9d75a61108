"""
Tracking module - Moving feature point tracking.

This module provides:
- FeatureTracker: Lucas-Kanade tracking engine with auto-replenishment
- Track / TrackSet: Track records and the ordered set that owns them
- ReplenishmentPolicy / AcceptancePolicy: Track lifecycle rules
- Detector and flow adapters over OpenCV
- draw_tracks: Overlay of each track's path

Example:
    >>> from motiontrack.tracking import FeatureTracker
    >>> tracker = FeatureTracker()
    >>> for frame_num, frame in video:
    ...     output = tracker.process_frame(frame_num, frame)
"""

from motiontrack.tracking.track import Track, TrackSet, manhattan
from motiontrack.tracking.adapters import (
    DetectorAdapter,
    FlowAdapter,
    FlowResult,
    ShiTomasiDetector,
    LucasKanadeFlow,
    to_gray,
)
from motiontrack.tracking.policy import ReplenishmentPolicy, AcceptancePolicy
from motiontrack.tracking.overlay import draw_tracks
from motiontrack.tracking.tracker import FeatureTracker, TrackingStats

__all__ = [
    "FeatureTracker",
    "TrackingStats",
    "Track",
    "TrackSet",
    "manhattan",
    "DetectorAdapter",
    "FlowAdapter",
    "FlowResult",
    "ShiTomasiDetector",
    "LucasKanadeFlow",
    "to_gray",
    "ReplenishmentPolicy",
    "AcceptancePolicy",
    "draw_tracks",
]
