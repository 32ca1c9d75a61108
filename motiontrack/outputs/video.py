"""
Frame output handlers.

Provides output handlers that persist the processed frames:
- VideoFileOutput: Video file written with cv2.VideoWriter
- ImageSequenceOutput: One numbered image file per frame
"""

import logging
from pathlib import Path

import cv2
import numpy as np

from motiontrack.core.errors import SinkRejectedError
from motiontrack.core.video import encode_fourcc
from motiontrack.outputs.base import BaseOutput, OutputSpec

logger = logging.getLogger(__name__)


class VideoFileOutput(BaseOutput):
    """
    Writes processed frames to a video file.

    Options:
        filename: Output filename (default: input_tracked.avi)
        codec: Four-character codec code (default: codec of the input,
            falling back to MJPG)
        fps: Frame rate override (default: input frame rate, or 25)
    """

    DEFAULT_CODEC = "MJPG"
    DEFAULT_FPS = 25.0
    default_suffix = "_tracked"
    default_extension = "avi"

    def __init__(self, spec: OutputSpec, input_path: str):
        super().__init__(spec, input_path)
        self.writer: cv2.VideoWriter | None = None
        self.frame_size: tuple[int, int] | None = None
        self.codec: str | None = spec.get('codec')
        if self.codec is not None and len(self.codec) != 4:
            raise ValueError(f"Invalid codec: {self.codec}. Must be 4 characters.")

    def initialize(self, video_props: dict) -> None:
        if self.codec:
            codecs = [self.codec]
        else:
            # Reuse the input codec when the container accepts it
            codecs = [c for c in (video_props.get('fourcc'), self.DEFAULT_CODEC) if c]
        fps = self.spec.get_int('fps', 0) or video_props.get('fps') or self.DEFAULT_FPS
        self.frame_size = (video_props['width'], video_props['height'])

        for codec in codecs:
            writer = cv2.VideoWriter(
                str(self.output_path),
                encode_fourcc(codec),
                fps,
                self.frame_size,
            )
            if writer.isOpened():
                self.writer = writer
                logger.debug("Writing %s with codec %s", self.output_path, codec)
                return
            logger.warning("Codec %s rejected for %s", codec, self.output_path)

        raise SinkRejectedError(
            f"Could not open video writer for {self.output_path} (tried {codecs})"
        )

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        tracking_data: dict,
    ) -> None:
        if self.writer is None:
            raise SinkRejectedError(
                f"Video writer for {self.output_path} is not open", frame_num
            )
        height, width = frame.shape[:2]
        if (width, height) != self.frame_size:
            # cv2.VideoWriter drops mismatched frames without reporting it
            raise SinkRejectedError(
                f"Frame {frame_num} is {width}x{height}, writer expects "
                f"{self.frame_size[0]}x{self.frame_size[1]}",
                frame_num,
            )
        self.writer.write(frame)

    def finalize(self) -> None:
        if self.writer:
            self.writer.release()
            self.writer = None


class ImageSequenceOutput(BaseOutput):
    """
    Writes each processed frame as a numbered image file.

    Files are named ``{prefix}{index:0{digits}d}.{ext}``.

    Options:
        prefix: Filename prefix, may include a directory (default: input_)
        ext: Image extension (default: png)
        digits: Zero padding of the index (default: 3)
        start: Index of the first written image (default: 0)
    """

    def __init__(self, spec: OutputSpec, input_path: str):
        self.prefix = spec.get('prefix', f"{Path(input_path).stem}_")
        self.ext = spec.get('ext', 'png').lstrip('.')
        self.digits = spec.get_int('digits', 3)
        self.start = spec.get_int('start', 0)
        self.index = self.start
        self.written: list[Path] = []
        super().__init__(spec, input_path)

    def _resolve_output_path(self) -> Path:
        # Path of the first image; the rest follow the same pattern
        return self.path_for(self.start)

    def path_for(self, index: int) -> Path:
        return Path(f"{self.prefix}{index:0{self.digits}d}.{self.ext}")

    def initialize(self, video_props: dict) -> None:
        self.index = self.start
        self.written = []
        parent = self.output_path.parent
        if str(parent) not in ('', '.'):
            parent.mkdir(parents=True, exist_ok=True)

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        tracking_data: dict,
    ) -> None:
        path = self.path_for(self.index)
        try:
            ok = cv2.imwrite(str(path), frame)
        except cv2.error as e:
            raise SinkRejectedError(f"Failed to write image: {path}", frame_num) from e
        if not ok:
            raise SinkRejectedError(f"Failed to write image: {path}", frame_num)
        self.written.append(path)
        self.index += 1

    def finalize(self) -> None:
        pass

    def get_output_paths(self) -> list[Path]:
        """Return every image written so far."""
        return list(self.written)
