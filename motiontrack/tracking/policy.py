"""
Track lifecycle policies.

ReplenishmentPolicy decides when new points are seeded; AcceptancePolicy
decides which advanced points survive into the next frame.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from motiontrack.core.config import TrackerConfig
from motiontrack.tracking.adapters import DetectorAdapter, FlowResult
from motiontrack.tracking.track import Track, TrackSet

logger = logging.getLogger(__name__)


@dataclass
class ReplenishmentPolicy:
    """
    Seeds new tracks once the live count drops to a low-water mark.

    Candidates are appended without checking for existing tracks nearby,
    so a new track may overlap an old one.
    """
    low_water_mark: int = 10
    max_count: int = 500
    quality_level: float = 0.01
    min_distance: float = 10.0

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "ReplenishmentPolicy":
        return cls(
            low_water_mark=config.low_water_mark,
            max_count=config.max_count,
            quality_level=config.quality_level,
            min_distance=config.min_distance,
        )

    def needs_replenishment(self, track_count: int) -> bool:
        return track_count <= self.low_water_mark

    def replenish(
        self,
        track_set: TrackSet,
        gray: np.ndarray,
        detector: DetectorAdapter,
    ) -> int:
        """
        Detect candidates on ``gray`` and append them to ``track_set``.

        Returns:
            Number of tracks added (0 when no replenishment was needed)
        """
        if not self.needs_replenishment(len(track_set)):
            return 0

        candidates = detector.detect(
            gray,
            max_count=self.max_count,
            quality_level=self.quality_level,
            min_distance=self.min_distance,
        )
        added = track_set.seed(np.asarray(candidates).reshape(-1, 2))
        logger.debug(
            "Replenished %d tracks (had %d, low-water mark %d)",
            added, len(track_set) - added, self.low_water_mark,
        )
        return added


@dataclass
class AcceptancePolicy:
    """
    Keeps tracks that were matched by the flow and visibly moved.

    A track survives iff its flow status is set and its Manhattan
    displacement is strictly greater than ``min_displacement``. Matched
    but static points are dropped so the set follows moving subjects.
    """
    min_displacement: float = 2.0
    require_status: bool = True

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "AcceptancePolicy":
        return cls(
            min_displacement=config.min_displacement,
            require_status=config.require_status,
        )

    def accept(self, track: Track, status: bool) -> bool:
        if self.require_status and not status:
            return False
        return track.displacement > self.min_displacement

    def evaluate(self, tracks: Sequence[Track], flow: FlowResult) -> list[bool]:
        """Return one keep flag per track, index-aligned with ``tracks``."""
        return [
            self.accept(track, bool(ok))
            for track, ok in zip(tracks, flow.status)
        ]
