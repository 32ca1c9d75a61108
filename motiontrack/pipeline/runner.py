"""
Video processor loop.

Pulls frames from a frame source, runs them through a frame processor and
hands the results to the output sinks, optionally showing input and output
in OpenCV windows.
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from motiontrack.core.base import FrameProcessor
from motiontrack.core.config import ProcessorConfig
from motiontrack.core.errors import SinkRejectedError
from motiontrack.core.video import FrameSource
from motiontrack.outputs.manager import OutputManager

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of a processing run."""
    frames: int = 0
    rejected: int = 0
    stopped: bool = False

    def to_dict(self) -> dict:
        return {
            "frames": self.frames,
            "rejected": self.rejected,
            "stopped": self.stopped,
        }


class VideoProcessor:
    """
    Frame-sequential processing loop.

    Each cycle reads one frame, processes it (unless processing is
    switched off, in which case the input is passed through), offers the
    result to the outputs and displays it. The loop ends at the end of
    the stream, after ``stop_at_frame`` frames, on a key press in a
    display window, or when ``stop()`` is called between cycles.

    A frame rejected by an output is logged and counted; the loop moves
    on to the next frame. Errors raised by the frame processor end the
    run and propagate to the caller.

    Example:
        >>> with VideoReader("input.mp4") as reader:
        ...     vp = VideoProcessor(reader, FeatureTracker(), outputs=manager)
        ...     summary = vp.run()
    """

    def __init__(
        self,
        source: FrameSource,
        processor: FrameProcessor | None = None,
        outputs: OutputManager | None = None,
        config: ProcessorConfig | None = None,
    ):
        self.source = source
        self.processor = processor
        self.outputs = outputs
        self.config = config or ProcessorConfig()

        self.frame_number = 0
        self.rejected = 0
        self._stop = False

    @property
    def frame_rate(self) -> float:
        return self.source.properties.fps

    @property
    def codec(self) -> str:
        """Four-character codec code of the input."""
        return self.source.properties.fourcc

    @property
    def frame_size(self) -> tuple[int, int]:
        return self.source.properties.frame_size

    def stop(self) -> None:
        """Ask the loop to end after the current cycle."""
        self._stop = True

    @property
    def is_stopped(self) -> bool:
        return self._stop

    def _tracking_data(self) -> dict:
        if self.processor is not None and hasattr(self.processor, 'tracking_data'):
            return self.processor.tracking_data()
        return {}

    def _show(self, frame: np.ndarray, output: np.ndarray) -> None:
        if self.config.input_window_name:
            cv2.imshow(self.config.input_window_name, frame)
        cv2.imshow(self.config.window_name, output)

        # Windows only refresh while waiting for a key
        key = cv2.waitKey(self.config.delay_ms if self.config.delay_ms > 0 else 1)
        if key >= 0:
            logger.info("Key pressed, stopping at frame %d", self.frame_number)
            self.stop()

    def process_next(self) -> bool:
        """
        Run one cycle.

        Returns:
            False at end of stream, True otherwise
        """
        ret, frame = self.source.read_frame()
        if not ret:
            return False
        self.frame_number += 1

        if self.config.call_process and self.processor is not None:
            output = self.processor.process_frame(self.frame_number, frame)
        else:
            output = frame

        if self.outputs is not None:
            try:
                self.outputs.process_frame(
                    self.frame_number, output, self._tracking_data()
                )
            except SinkRejectedError as e:
                self.rejected += 1
                logger.warning("Frame %d lost: %s", self.frame_number, e)

        if self.config.display:
            self._show(frame, output)

        stop_at = self.config.stop_at_frame
        if stop_at is not None and self.frame_number >= stop_at:
            self.stop()
        return True

    def run(self) -> RunSummary:
        """
        Process frames until the stream ends or the loop is stopped.

        Returns:
            Summary of frames processed and rejected by the outputs
        """
        self._stop = False
        self.rejected = 0
        start = self.frame_number

        try:
            if self.outputs is not None:
                self.outputs.initialize_all(self.source.properties.to_dict())
            while not self._stop:
                if not self.process_next():
                    break
        finally:
            if self.outputs is not None:
                self.outputs.finalize_all()
            if self.config.display:
                cv2.destroyAllWindows()

        summary = RunSummary(
            frames=self.frame_number - start,
            rejected=self.rejected,
            stopped=self._stop,
        )
        logger.info(
            "Processed %d frames (%d rejected by outputs)",
            summary.frames, summary.rejected,
        )
        return summary
