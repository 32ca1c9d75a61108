"""
OpenCV adapters for feature detection and optical flow.

The tracking engine only talks to these through the ``DetectorAdapter``
and ``FlowAdapter`` protocols, so tests (or other vision back ends) can
substitute their own implementations.
"""

from typing import NamedTuple, Protocol, runtime_checkable

import cv2
import numpy as np


class FlowResult(NamedTuple):
    """Output of a flow computation, index-aligned with its input points."""
    points: np.ndarray   # Nx2 new positions
    status: np.ndarray   # N success flags
    error: np.ndarray    # N error magnitudes


@runtime_checkable
class DetectorAdapter(Protocol):
    """Finds candidate points to track in a single grayscale frame."""

    def detect(
        self,
        gray: np.ndarray,
        max_count: int,
        quality_level: float,
        min_distance: float,
    ) -> np.ndarray:
        """Return at most ``max_count`` points as an Nx2 array."""
        ...


@runtime_checkable
class FlowAdapter(Protocol):
    """Estimates where points moved between two grayscale frames."""

    def compute(
        self,
        prev_gray: np.ndarray,
        curr_gray: np.ndarray,
        prev_points: np.ndarray,
    ) -> FlowResult:
        """Track Nx2 ``prev_points`` from ``prev_gray`` into ``curr_gray``."""
        ...


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to grayscale; single-channel frames pass through."""
    if frame.ndim == 2:
        return frame
    if frame.ndim == 3 and frame.shape[2] == 1:
        return frame[:, :, 0]
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def empty_points() -> np.ndarray:
    return np.empty((0, 2), dtype=np.float32)


class ShiTomasiDetector:
    """Corner detection with ``cv2.goodFeaturesToTrack``."""

    def __init__(self, block_size: int = 3):
        self.block_size = block_size

    def detect(
        self,
        gray: np.ndarray,
        max_count: int,
        quality_level: float,
        min_distance: float,
    ) -> np.ndarray:
        corners = cv2.goodFeaturesToTrack(
            gray,
            maxCorners=max_count,
            qualityLevel=quality_level,
            minDistance=min_distance,
            blockSize=self.block_size,
        )
        # OpenCV returns None when no corner passes the quality threshold
        if corners is None:
            return empty_points()
        return corners.reshape(-1, 2)


class LucasKanadeFlow:
    """
    Sparse pyramidal Lucas-Kanade optical flow.

    Attributes:
        lk_params: Keyword arguments passed to ``cv2.calcOpticalFlowPyrLK``
    """

    def __init__(
        self,
        win_size: tuple[int, int] = (21, 21),
        max_level: int = 3,
        criteria_count: int = 30,
        criteria_eps: float = 0.01,
    ):
        self.lk_params = {
            "winSize": tuple(win_size),
            "maxLevel": max_level,
            "criteria": (
                cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
                criteria_count,
                criteria_eps,
            ),
        }

    def compute(
        self,
        prev_gray: np.ndarray,
        curr_gray: np.ndarray,
        prev_points: np.ndarray,
    ) -> FlowResult:
        if len(prev_points) == 0:
            return FlowResult(
                empty_points(),
                np.empty(0, dtype=bool),
                np.empty(0, dtype=np.float32),
            )

        pts = np.asarray(prev_points, dtype=np.float32).reshape(-1, 1, 2)
        next_pts, status, error = cv2.calcOpticalFlowPyrLK(
            prev_gray, curr_gray, pts, None, **self.lk_params
        )
        return FlowResult(
            next_pts.reshape(-1, 2),
            status.ravel() == 1,
            error.ravel(),
        )
