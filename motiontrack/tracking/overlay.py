"""
Track overlay drawing.
"""

from typing import Iterable

import cv2
import numpy as np

from motiontrack.tracking.track import Track

WHITE = (255, 255, 255)


def _pixel(point: tuple[float, float]) -> tuple[int, int]:
    return (int(round(point[0])), int(round(point[1])))


def draw_tracks(
    frame: np.ndarray,
    tracks: Iterable[Track],
    color: tuple[int, int, int] = WHITE,
    radius: int = 3,
) -> np.ndarray:
    """
    Draw each track's path from origin to current position.

    Args:
        frame: Input frame, left untouched
        tracks: Tracks to draw
        color: BGR color for lines and markers
        radius: Radius of the filled marker at the current position

    Returns:
        Annotated copy of ``frame``
    """
    vis = frame.copy()
    for track in tracks:
        current = _pixel(track.current)
        cv2.line(vis, _pixel(track.origin), current, color)
        cv2.circle(vis, current, radius, color, -1)
    return vis
