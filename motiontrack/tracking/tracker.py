"""
Feature point tracking using Lucas-Kanade optical flow.

This module provides the FeatureTracker class which follows moving
feature points through video frames, seeding new points whenever too few
survive and dropping points that were lost or stayed still.
"""

import logging
from dataclasses import dataclass

import numpy as np

from motiontrack.core.config import TrackerConfig
from motiontrack.core.errors import AdapterContractViolation, DegenerateFrameError
from motiontrack.tracking.adapters import (
    DetectorAdapter,
    FlowAdapter,
    FlowResult,
    LucasKanadeFlow,
    ShiTomasiDetector,
    to_gray,
)
from motiontrack.tracking.overlay import draw_tracks
from motiontrack.tracking.policy import AcceptancePolicy, ReplenishmentPolicy
from motiontrack.tracking.track import Track, TrackSet

logger = logging.getLogger(__name__)


@dataclass
class TrackingStats:
    """Statistics from a tracking update."""
    frame: int
    tracked: int
    lost: int
    added: int
    total: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {
            "frame": self.frame,
            "tracked": self.tracked,
            "lost": self.lost,
            "added": self.added,
            "total": self.total,
        }


class FeatureTracker:
    """
    Moving-feature tracker with automatic replenishment.

    Each call to ``process_frame`` runs one cycle: convert to grayscale,
    seed new points if the live count is at or below the low-water mark,
    advance all points with optical flow, drop points that failed or did
    not move, draw the survivors and hand the frame over as the previous
    frame of the next cycle.

    Attributes:
        config: Tracker settings
        track_set: Tracks and frame pair owned by this tracker
        replenishment: Policy deciding when new points are seeded
        acceptance: Policy deciding which points survive a frame
        last_stats: Statistics of the most recent cycle

    Example:
        >>> tracker = FeatureTracker()
        >>> for frame_num, frame in reader:
        ...     output = tracker.process_frame(frame_num, frame)
        ...     stats = tracker.last_stats
        ...     print(f"Frame {stats.frame}: {stats.tracked} tracked, {stats.lost} lost")
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        detector: DetectorAdapter | None = None,
        flow: FlowAdapter | None = None,
    ):
        """
        Initialize the feature tracker.

        Args:
            config: Tracker settings (defaults if None)
            detector: Corner detector (Shi-Tomasi if None)
            flow: Optical flow estimator (pyramidal Lucas-Kanade if None)
        """
        self.config = config or TrackerConfig()
        self.config.validate()

        self.detector = detector or ShiTomasiDetector(block_size=self.config.block_size)
        self.flow = flow or LucasKanadeFlow(
            win_size=self.config.win_size,
            max_level=self.config.max_level,
            criteria_count=self.config.criteria_count,
            criteria_eps=self.config.criteria_eps,
        )
        self.replenishment = ReplenishmentPolicy.from_config(self.config)
        self.acceptance = AcceptancePolicy.from_config(self.config)

        self.track_set = TrackSet()
        self.last_stats: TrackingStats | None = None
        self.frame_count = 0

    @property
    def tracks(self) -> list[Track]:
        """Surviving tracks, in seeding order."""
        return list(self.track_set.tracks)

    def _check_dimensions(self, gray: np.ndarray) -> None:
        prev = self.track_set.prev_gray
        if prev is not None and prev.shape != gray.shape:
            raise DegenerateFrameError(
                f"Frame size changed from {prev.shape} to {gray.shape}",
                previous_shape=prev.shape,
                shape=gray.shape,
            )

    def _advance(self, prev_gray: np.ndarray, gray: np.ndarray) -> FlowResult:
        """Run the flow adapter on all tracks and check its output lengths."""
        expected = len(self.track_set)
        prev_points = self.track_set.positions()
        result = self.flow.compute(prev_gray, gray, prev_points)

        for name, values in zip(FlowResult._fields, result):
            if len(values) != expected:
                raise AdapterContractViolation(
                    f"Flow adapter returned {len(values)} {name} values "
                    f"for {expected} input points",
                    expected=expected,
                    actual=len(values),
                )
        return result

    def update(self, frame: np.ndarray, rotate: bool = True) -> TrackingStats:
        """
        Run one tracking cycle on a BGR frame.

        Args:
            frame: BGR frame
            rotate: Hand the frame over as the previous frame once done.
                Pass False to draw first, then call ``track_set.rotate()``.

        Raises:
            DegenerateFrameError: If the frame size differs from the previous frame
            AdapterContractViolation: If the flow adapter output is misaligned

        The track set is left as it was before the call whenever the cycle
        raises, whether from a contract check or from an adapter itself.
        """
        gray = to_gray(frame)
        self._check_dimensions(gray)
        state = self.track_set.snapshot()

        try:
            added = self.replenishment.replenish(self.track_set, gray, self.detector)
            self.track_set.set_current_frame(gray)

            lost = 0
            if len(self.track_set) > 0:
                result = self._advance(self.track_set.prev_gray, gray)
                self.track_set.advance(result.points)
                keep = self.acceptance.evaluate(self.track_set.tracks, result)
                lost = self.track_set.compact(keep)
        except Exception:
            # Any aborted cycle leaves the track set as it was
            self.track_set.restore(state)
            raise

        self.frame_count += 1
        total = len(self.track_set)
        self.last_stats = TrackingStats(
            frame=self.frame_count,
            tracked=total,
            lost=lost,
            added=added,
            total=total,
        )
        logger.debug(
            "Frame %d: %d tracked, %d lost, %d added",
            self.frame_count, total, lost, added,
        )
        if rotate:
            self.track_set.rotate()
        return self.last_stats

    def process_frame(self, frame_num: int, frame: np.ndarray) -> np.ndarray:
        """
        Track features in ``frame`` and return it annotated.

        Args:
            frame_num: Current frame number (1-indexed)
            frame: BGR frame

        Returns:
            Copy of the frame with each track drawn from origin to current position
        """
        self.update(frame, rotate=False)
        output = draw_tracks(frame, self.track_set.tracks)
        self.track_set.rotate()
        return output

    def tracking_data(self) -> dict:
        """Current tracks in the form consumed by the output handlers."""
        return {
            "tracks": self.tracks,
            "stats": self.last_stats,
        }

    def reset(self) -> None:
        """Reset the tracker state."""
        self.track_set.clear()
        self.last_stats = None
        self.frame_count = 0
