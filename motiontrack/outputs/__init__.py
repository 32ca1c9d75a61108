"""
Output handlers module.

This module provides the sinks of the video processor loop:
- VideoFileOutput: Processed frames as a video file
- ImageSequenceOutput: Processed frames as numbered images
- CSVOutput: Track positions as CSV

Example:
    >>> from motiontrack.outputs import OutputManager
    >>> manager = OutputManager("input.mp4")
    >>> manager.add_output("video=filename=tracked.avi")
    >>> manager.add_output("images=prefix=frames/out_:digits=4")
    >>> manager.add_output("csv")
"""

from motiontrack.outputs.base import OutputSpec, BaseOutput
from motiontrack.outputs.video import VideoFileOutput, ImageSequenceOutput
from motiontrack.outputs.data import CSVOutput
from motiontrack.outputs.manager import (
    OutputManager,
    create_output,
    parse_output_specs,
    register_output_type,
)

__all__ = [
    "OutputSpec",
    "BaseOutput",
    "VideoFileOutput",
    "ImageSequenceOutput",
    "CSVOutput",
    "OutputManager",
    "create_output",
    "parse_output_specs",
    "register_output_type",
]
