"""
Protocols shared across motiontrack.

Frame processors are defined structurally: anything with a matching
``process_frame`` method can be plugged into the video processor loop,
no base class required.
"""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class FrameProcessor(Protocol):
    """
    Capability interface for per-frame processing.

    Implementations receive each BGR input frame in playback order and
    return the frame to hand to the output sinks. ``FeatureTracker`` is
    the tracking implementation; other processors (filters, detectors)
    plug in the same way.
    """

    def process_frame(self, frame_num: int, frame: np.ndarray) -> np.ndarray:
        """
        Process a single frame.

        Args:
            frame_num: Current frame number (1-indexed)
            frame: BGR frame as numpy array

        Returns:
            Output frame
        """
        ...


class PassThroughProcessor:
    """Processor returning an unmodified copy of every frame."""

    def process_frame(self, frame_num: int, frame: np.ndarray) -> np.ndarray:
        return frame.copy()
