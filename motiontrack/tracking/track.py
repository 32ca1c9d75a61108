"""
Track records and the track set owned by the tracking engine.

A track is one followed point: where it was first seeded (its origin),
where it was in the previous frame and where it is now. The track set
keeps tracks in insertion order together with the previous/current
grayscale frames the flow adapter compares.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

Point = tuple[float, float]


def manhattan(a: Point, b: Point) -> float:
    """Sum of absolute coordinate differences between two points."""
    return abs(b[0] - a[0]) + abs(b[1] - a[1])


@dataclass(frozen=True)
class Track:
    """
    A single tracked point.

    Attributes:
        origin: Position in the frame the track was seeded
        current: Latest position
        previous: Position in the prior frame, None until the first advance
    """
    origin: Point
    current: Point
    previous: Point | None = None

    @classmethod
    def seed(cls, point: Sequence[float]) -> "Track":
        """Create a track at a freshly detected position."""
        p = (float(point[0]), float(point[1]))
        return cls(origin=p, current=p)

    def advanced(self, position: Sequence[float]) -> "Track":
        """Return this track moved to a new position."""
        return Track(
            origin=self.origin,
            current=(float(position[0]), float(position[1])),
            previous=self.current,
        )

    @property
    def displacement(self) -> float:
        """Manhattan displacement between previous and current position."""
        if self.previous is None:
            return 0.0
        return manhattan(self.previous, self.current)


class TrackSet:
    """
    Ordered collection of tracks plus the frame pair they were tracked on.

    Tracks are kept in insertion order. Removing tracks never reorders the
    survivors.

    Example:
        >>> ts = TrackSet()
        >>> ts.seed([(10, 20), (30, 40)])
        2
        >>> ts.origins().shape
        (2, 2)
    """

    def __init__(self):
        self.tracks: list[Track] = []
        self.prev_gray: np.ndarray | None = None
        self.curr_gray: np.ndarray | None = None

    def __len__(self) -> int:
        return len(self.tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __getitem__(self, index: int) -> Track:
        return self.tracks[index]

    def origins(self) -> np.ndarray:
        """Origin positions as an Nx2 float array."""
        return np.array([t.origin for t in self.tracks], dtype=np.float64).reshape(-1, 2)

    def positions(self) -> np.ndarray:
        """Current positions as an Nx2 float array."""
        return np.array([t.current for t in self.tracks], dtype=np.float64).reshape(-1, 2)

    def seed(self, points: Iterable[Sequence[float]]) -> int:
        """Append a new track for every point; returns the number added."""
        new_tracks = [Track.seed(p) for p in points]
        self.tracks.extend(new_tracks)
        return len(new_tracks)

    def advance(self, positions: Sequence[Sequence[float]]) -> None:
        """Move every track to its index-aligned new position."""
        if len(positions) != len(self.tracks):
            raise ValueError(
                f"Expected {len(self.tracks)} positions, got {len(positions)}"
            )
        self.tracks = [t.advanced(p) for t, p in zip(self.tracks, positions)]

    def compact(self, keep: Sequence[bool]) -> int:
        """
        Drop every track whose ``keep`` flag is false.

        Returns:
            Number of tracks removed
        """
        if len(keep) != len(self.tracks):
            raise ValueError(
                f"Expected {len(self.tracks)} flags, got {len(keep)}"
            )
        before = len(self.tracks)
        self.tracks = [t for t, k in zip(self.tracks, keep) if k]
        return before - len(self.tracks)

    def set_current_frame(self, gray: np.ndarray) -> None:
        """
        Install the grayscale frame being processed.

        Before the first frame there is no previous frame; it is seeded as
        a duplicate of the current one.
        """
        self.curr_gray = gray
        if self.prev_gray is None:
            self.prev_gray = gray.copy()

    def rotate(self) -> None:
        """
        Make the current frame the previous one for the next cycle.

        Current positions already serve as the next cycle's starting
        positions, so only the frame pair changes hands.
        """
        if self.curr_gray is None:
            return
        self.prev_gray = self.curr_gray
        self.curr_gray = None

    def snapshot(self) -> tuple[list[Track], np.ndarray | None]:
        """Capture tracks and previous frame, for undoing an aborted cycle."""
        return list(self.tracks), self.prev_gray

    def restore(self, state: tuple[list[Track], np.ndarray | None]) -> None:
        tracks, prev_gray = state
        self.tracks = list(tracks)
        self.prev_gray = prev_gray
        self.curr_gray = None

    def clear(self) -> None:
        """Drop all tracks and both frames."""
        self.tracks = []
        self.prev_gray = None
        self.curr_gray = None
