"""
Frame sources for motiontrack.

Provides consistent interfaces for pulling BGR frames out of video files,
cameras and ordered lists of image files. All sources iterate as
``(frame_num, frame)`` pairs with 1-indexed frame numbers and stop quietly
at the end of the stream.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, Protocol, Sequence, runtime_checkable

import cv2
import numpy as np

from motiontrack.core.errors import FrameSourceError


def decode_fourcc(value: int | float) -> str:
    """
    Unpack a packed codec handle into its four-character code.

    The handle stores the first character in the least significant byte
    (little-endian order, as produced by ``cv2.VideoWriter_fourcc``).
    Bytes are extracted arithmetically, so the result does not depend on
    the host byte order.

    Example:
        >>> decode_fourcc(cv2.VideoWriter_fourcc(*"mp4v"))
        'mp4v'
    """
    code = int(value) & 0xFFFFFFFF
    return "".join(chr((code >> (8 * i)) & 0xFF) for i in range(4))


def encode_fourcc(code: str) -> int:
    """Pack a four-character codec code, first character in the low byte."""
    if len(code) != 4:
        raise ValueError(f"Codec code must be exactly 4 characters: {code!r}")
    value = 0
    for i, char in enumerate(code):
        value |= (ord(char) & 0xFF) << (8 * i)
    return value


@dataclass
class VideoProperties:
    """
    Geometry, timing and codec of a frame source.

    ``frame_count`` is 0 for cameras and other live sources.
    """
    width: int
    height: int
    fps: float
    frame_count: int
    fourcc: str = "mp4v"

    @classmethod
    def from_capture(cls, cap: cv2.VideoCapture) -> "VideoProperties":
        fourcc = decode_fourcc(cap.get(cv2.CAP_PROP_FOURCC))
        # Backends report 0 (or garbage) for raw and camera streams
        if not fourcc.strip("\x00") or not fourcc.isprintable():
            fourcc = cls.fourcc
        return cls(
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            cap.get(cv2.CAP_PROP_FPS),
            max(int(cap.get(cv2.CAP_PROP_FRAME_COUNT)), 0),
            fourcc,
        )

    def to_dict(self) -> dict:
        """Plain dict as handed to ``BaseOutput.initialize``."""
        return asdict(self)

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height), the order cv2.VideoWriter expects."""
        return self.width, self.height


@runtime_checkable
class FrameSource(Protocol):
    """Protocol for anything that supplies BGR frames in playback order."""

    @property
    def properties(self) -> VideoProperties:
        ...

    def read_frame(self) -> tuple[bool, np.ndarray | None]:
        """Read the next frame; ``(False, None)`` at end of stream."""
        ...

    def close(self) -> None:
        ...


class _Reader(ABC):
    """Shared plumbing of the frame sources: properties, iteration, context."""

    first_frame: int = 1

    def __init__(self):
        self._props: VideoProperties | None = None

    @abstractmethod
    def open(self) -> "_Reader":
        """Open the source and read its properties."""

    @abstractmethod
    def close(self) -> None:
        """Release the source."""

    @abstractmethod
    def read_frame(self) -> tuple[bool, np.ndarray | None]:
        """Read the next frame; ``(False, None)`` once the stream or range ends."""

    @property
    def properties(self) -> VideoProperties:
        if self._props is None:
            raise RuntimeError(f"{type(self).__name__} is not open, call open() first")
        return self._props

    def __iter__(self) -> Iterator[tuple[int, np.ndarray]]:
        """Yield ``(frame_num, frame)`` pairs until ``read_frame`` reports the end."""
        if self._props is None:
            self.open()
        frame_num = self.first_frame
        while True:
            ok, frame = self.read_frame()
            if not ok:
                return
            yield frame_num, frame
            frame_num += 1

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


class VideoReader(_Reader):
    """
    Frame source backed by ``cv2.VideoCapture``.

    ``source`` is a video file path or an integer camera index. For files,
    reading starts at ``first_frame``. ``read_frame`` reports the end of
    the stream after ``last_frame`` (both 1-indexed), so the range holds for
    iteration and for the video processor loop alike. Cameras always start
    at their live frame.

    Example:
        with VideoReader("input.mp4", first_frame=100, last_frame=500) as reader:
            for frame_num, frame in reader:
                process(frame)
    """

    def __init__(
        self,
        source: str | Path | int,
        first_frame: int = 1,
        last_frame: int | None = None,
    ):
        super().__init__()
        self.source = source if isinstance(source, int) else Path(source)
        self.first_frame = first_frame
        self.last_frame = last_frame
        self._cap: cv2.VideoCapture | None = None
        self._next_frame = first_frame

    @property
    def is_camera(self) -> bool:
        return isinstance(self.source, int)

    def open(self) -> "VideoReader":
        """
        Open the capture and read its properties.

        Raises:
            FileNotFoundError: If the video file does not exist
            FrameSourceError: If OpenCV cannot open the file or camera
        """
        if self.is_camera:
            cap = cv2.VideoCapture(self.source)
        elif self.source.exists():
            cap = cv2.VideoCapture(str(self.source))
        else:
            raise FileNotFoundError(f"Video file not found: {self.source}")

        if not cap.isOpened():
            raise FrameSourceError(f"Failed to open video source: {self.source}")

        self._cap = cap
        self._props = VideoProperties.from_capture(cap)
        self._next_frame = 1 if self.is_camera else self.first_frame
        if self.is_camera:
            return self

        count = self._props.frame_count
        if count > 0 and (self.last_frame is None or self.last_frame > count):
            self.last_frame = count
        if self.first_frame > 1:
            cap.set(cv2.CAP_PROP_POS_FRAMES, self.first_frame - 1)
        return self

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def read_frame(self) -> tuple[bool, np.ndarray | None]:
        if self._cap is None:
            raise RuntimeError("VideoReader is not open, call open() first")
        if self.last_frame is not None and self._next_frame > self.last_frame:
            return False, None
        ok, frame = self._cap.read()
        if not ok:
            return False, None
        self._next_frame += 1
        return True, frame


class ImageSequenceReader(_Reader):
    """
    Frame source reading an ordered list of image files.

    Images are read with ``cv2.imread`` in the order given. An unreadable
    image ends the stream, the same way a failed read ends a video.

    Example:
        reader = ImageSequenceReader(sorted(Path("frames").glob("*.png")), fps=25)
        for frame_num, frame in reader:
            process(frame)
    """

    def __init__(self, paths: Sequence[str | Path], fps: float = 0.0):
        super().__init__()
        self.paths = [Path(p) for p in paths]
        self.fps = fps
        self._next = 0

    def open(self) -> "ImageSequenceReader":
        """Probe the first image for the sequence dimensions."""
        if not self.paths:
            raise FrameSourceError("Image sequence is empty")
        probe = cv2.imread(str(self.paths[0]))
        if probe is None:
            raise FrameSourceError(f"Failed to read image: {self.paths[0]}")
        self._props = VideoProperties(
            width=probe.shape[1],
            height=probe.shape[0],
            fps=self.fps,
            frame_count=len(self.paths),
        )
        self._next = 0
        return self

    def close(self) -> None:
        self._next = len(self.paths)

    def read_frame(self) -> tuple[bool, np.ndarray | None]:
        if self._next >= len(self.paths):
            return False, None
        frame = cv2.imread(str(self.paths[self._next]))
        self._next += 1
        return (False, None) if frame is None else (True, frame)

    def __len__(self) -> int:
        return len(self.paths)
