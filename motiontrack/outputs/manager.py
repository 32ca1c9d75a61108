"""
Sink registry and fan-out of processed frames to several sinks.
"""

import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from motiontrack.core.errors import SinkRejectedError
from motiontrack.outputs.base import BaseOutput, OutputSpec
from motiontrack.outputs.video import VideoFileOutput, ImageSequenceOutput
from motiontrack.outputs.data import CSVOutput

logger = logging.getLogger(__name__)


# Sink types addressable from output specifications
OUTPUT_TYPES: dict[str, type[BaseOutput]] = {
    'video': VideoFileOutput,
    'images': ImageSequenceOutput,
    'csv': CSVOutput,
}


def register_output_type(name: str, output_class: type[BaseOutput]) -> None:
    """Make ``output_class`` available as ``name=...`` in output specifications."""
    OUTPUT_TYPES[name.lower()] = output_class


def create_output(spec_string: str, input_path: str) -> BaseOutput:
    """
    Build a sink from an output specification.

    Raises:
        ValueError: If the specification is malformed or names no known type
    """
    spec = OutputSpec(spec_string)
    try:
        output_class = OUTPUT_TYPES[spec.output_type]
    except KeyError:
        raise ValueError(
            f"Unknown output type '{spec.output_type}', "
            f"expected one of {sorted(OUTPUT_TYPES)}"
        ) from None
    return output_class(spec, input_path)


class OutputManager:
    """
    Fans each processed frame out to a set of sinks.

    A sink rejecting a frame does not keep the frame from the remaining
    sinks. Once every sink was offered the frame, the rejections are
    raised together as one ``SinkRejectedError`` chained to the first.

    Example:
        >>> with OutputManager("clip.mp4", ["video=codec=MJPG", "csv"]) as outputs:
        ...     outputs.initialize_all(reader.properties.to_dict())
        ...     outputs.process_frame(1, frame, tracker.tracking_data())
    """

    def __init__(self, input_path: str, specs: Iterable[str] = ()):
        """
        Args:
            input_path: Input file (or camera label) default names derive from
            specs: Output specifications to add right away
        """
        self.input_path = input_path
        self.outputs: list[BaseOutput] = []
        for spec in specs:
            self.add_output(spec)

    def add_output(self, spec_string: str) -> BaseOutput:
        output = create_output(spec_string, self.input_path)
        self.outputs.append(output)
        logger.debug("Added %s -> %s", spec_string, output.get_output_path())
        return output

    def initialize_all(self, video_props: dict) -> None:
        for output in self.outputs:
            output.initialize(video_props)

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        tracking_data: dict,
    ) -> None:
        """
        Offer a frame to every sink.

        Raises:
            SinkRejectedError: If at least one sink rejected the frame
        """
        failures: list[SinkRejectedError] = []
        for output in self.outputs:
            try:
                output.process_frame(frame_num, frame, tracking_data)
            except SinkRejectedError as e:
                failures.append(e)

        if failures:
            message = "; ".join(str(e) for e in failures)
            raise SinkRejectedError(message, frame_num) from failures[0]

    def finalize_all(self) -> None:
        for output in self.outputs:
            output.finalize()

    def get_output_paths(self) -> list[Path]:
        """Files written so far, one per image for image sequences."""
        paths: list[Path] = []
        for output in self.outputs:
            if isinstance(output, ImageSequenceOutput):
                paths.extend(output.get_output_paths())
            else:
                paths.append(output.get_output_path())
        return paths

    def __len__(self) -> int:
        return len(self.outputs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize_all()
        return False


def parse_output_specs(specs: list[str], input_path: str) -> OutputManager:
    """Build an OutputManager holding one sink per specification."""
    return OutputManager(input_path, specs)
