"""
Data output handlers.

Provides output handlers that produce data files:
- CSVOutput: Per-frame track positions as CSV
"""

import csv

import numpy as np

from motiontrack.core.errors import SinkRejectedError
from motiontrack.outputs.base import BaseOutput, OutputSpec


class CSVOutput(BaseOutput):
    """
    Outputs the surviving tracks of every frame as a CSV file.

    Columns: frame, track, origin_x, origin_y, x, y, displacement

    ``track`` is the track's index within that frame's track set.

    Options:
        filename: Output filename (default: input_tracks.csv)
    """

    COLUMNS = ['frame', 'track', 'origin_x', 'origin_y', 'x', 'y', 'displacement']
    default_suffix = "_tracks"
    default_extension = "csv"

    def __init__(self, spec: OutputSpec, input_path: str):
        super().__init__(spec, input_path)
        self.file = None
        self.writer = None

    def initialize(self, video_props: dict) -> None:
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.writer(self.file)
        self.writer.writerow(self.COLUMNS)

    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        tracking_data: dict,
    ) -> None:
        if self.writer is None:
            raise SinkRejectedError(f"CSV file {self.output_path} is not open", frame_num)

        rows = []
        for index, track in enumerate(tracking_data.get('tracks', [])):
            ox, oy = track.origin
            x, y = track.current
            rows.append([
                frame_num, index,
                f"{ox:.3f}", f"{oy:.3f}", f"{x:.3f}", f"{y:.3f}",
                f"{track.displacement:.3f}",
            ])

        try:
            self.writer.writerows(rows)
        except OSError as e:
            raise SinkRejectedError(
                f"Failed to write frame {frame_num} to {self.output_path}", frame_num
            ) from e

    def finalize(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None
