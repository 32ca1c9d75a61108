"""
Tests for output handlers.
"""

import csv

import numpy as np
import pytest

from motiontrack.core.errors import SinkRejectedError
from motiontrack.outputs import (
    BaseOutput,
    CSVOutput,
    ImageSequenceOutput,
    OutputManager,
    OutputSpec,
    VideoFileOutput,
    register_output_type,
)
from motiontrack.outputs.manager import OUTPUT_TYPES
from motiontrack.tracking import Track

PROPS = {"width": 64, "height": 48, "fps": 10.0, "frame_count": 3, "fourcc": "MJPG"}


def blank(height: int = 48, width: int = 64) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


class TestOutputSpec:
    """Tests for OutputSpec parser."""

    def test_simple_spec(self):
        """Test parsing simple spec."""
        spec = OutputSpec("video")
        assert spec.output_type == "video"
        assert len(spec.options) == 0

    def test_spec_with_options(self):
        """Test parsing spec with options."""
        spec = OutputSpec("video=filename=test.avi:codec=XVID")
        assert spec.output_type == "video"
        assert spec.get('filename') == "test.avi"
        assert spec.get('codec') == "XVID"

    def test_value_with_colon(self):
        """Colons inside a value are kept."""
        spec = OutputSpec("images=prefix=C:/frames/out_:digits=4")
        assert spec.get('prefix') == "C:/frames/out_"
        assert spec.get_int('digits') == 4

    def test_get_int(self):
        """Test getting integer option."""
        spec = OutputSpec("images=digits=5")
        assert spec.get_int('digits') == 5
        assert spec.get_int('missing', 3) == 3

    def test_get_bool(self):
        """Test getting boolean option."""
        spec = OutputSpec("csv=header=yes")
        assert spec.get_bool('header') is True
        assert spec.get_bool('missing') is False

    def test_empty(self):
        """Empty specifications are refused."""
        with pytest.raises(ValueError):
            OutputSpec("")

    def test_malformed_option(self):
        """Options without a value are refused."""
        with pytest.raises(ValueError):
            OutputSpec("video=codec")


class TestImageSequenceOutput:
    """Tests for ImageSequenceOutput."""

    def test_numbering(self, tmp_path):
        """Files are numbered from the start index with zero padding."""
        prefix = tmp_path / "out" / "frame_"
        output = ImageSequenceOutput(
            OutputSpec(f"images=prefix={prefix}:digits=4:start=7"), "input.mp4"
        )
        output.initialize(PROPS)
        for n in (1, 2):
            output.process_frame(n, blank(), {})

        names = [p.name for p in output.get_output_paths()]
        assert names == ["frame_0007.png", "frame_0008.png"]
        assert all(p.exists() for p in output.get_output_paths())

    def test_default_prefix(self):
        """The default prefix derives from the input name."""
        output = ImageSequenceOutput(OutputSpec("images"), "clips/walk.mp4")
        assert str(output.get_output_path()) == "walk_000.png"

    def test_unwritable(self, tmp_path):
        """An unsupported extension rejects the frame."""
        output = ImageSequenceOutput(
            OutputSpec(f"images=prefix={tmp_path}/f_:ext=nosuchformat"), "input.mp4"
        )
        output.initialize(PROPS)
        with pytest.raises(SinkRejectedError):
            output.process_frame(1, blank(), {})


class TestVideoFileOutput:
    """Tests for VideoFileOutput."""

    def test_writes_file(self, tmp_path):
        """Frames are written with the input codec."""
        path = tmp_path / "out.avi"
        output = VideoFileOutput(OutputSpec(f"video=filename={path}"), "input.mp4")
        output.initialize(PROPS)
        for n in range(3):
            output.process_frame(n + 1, blank(), {})
        output.finalize()

        assert path.exists()
        assert path.stat().st_size > 0

    def test_size_mismatch(self, tmp_path):
        """A frame of the wrong size is rejected."""
        path = tmp_path / "out.avi"
        with VideoFileOutput(OutputSpec(f"video=filename={path}:codec=MJPG"), "in.mp4") as output:
            output.initialize(PROPS)
            with pytest.raises(SinkRejectedError):
                output.process_frame(1, blank(10, 10), {})

    def test_invalid_codec(self):
        """Codec codes must have four characters."""
        with pytest.raises(ValueError):
            VideoFileOutput(OutputSpec("video=codec=H26"), "input.mp4")

    def test_not_initialized(self):
        """Writing before initialize() is a rejection."""
        output = VideoFileOutput(OutputSpec("video"), "input.mp4")
        with pytest.raises(SinkRejectedError):
            output.process_frame(1, blank(), {})


class TestCSVOutput:
    """Tests for CSVOutput."""

    def test_rows(self, tmp_path):
        """One row per surviving track per frame."""
        path = tmp_path / "tracks.csv"
        tracks = [
            Track(origin=(1.0, 2.0), previous=(3.0, 4.0), current=(6.0, 4.0)),
            Track(origin=(5.0, 5.0), previous=(5.0, 5.0), current=(5.0, 9.0)),
        ]
        with CSVOutput(OutputSpec(f"csv=filename={path}"), "input.mp4") as output:
            output.initialize(PROPS)
            output.process_frame(1, blank(), {"tracks": tracks})
            output.process_frame(2, blank(), {"tracks": tracks[:1]})

        with open(path, newline='') as f:
            rows = list(csv.reader(f))

        assert rows[0] == CSVOutput.COLUMNS
        assert len(rows) == 4
        assert rows[1] == ['1', '0', '1.000', '2.000', '6.000', '4.000', '3.000']
        assert rows[3][:2] == ['2', '0']


class FailingOutput(BaseOutput):
    """Output that rejects every frame."""

    default_suffix = "_fail"
    default_extension = "txt"

    def initialize(self, video_props: dict) -> None:
        pass

    def process_frame(self, frame_num, frame, tracking_data) -> None:
        raise SinkRejectedError("disk full", frame_num)

    def finalize(self) -> None:
        pass


class TestOutputManager:
    """Tests for OutputManager."""

    def test_add_output(self):
        """Test adding outputs."""
        manager = OutputManager("input.mp4")
        manager.add_output("video")
        manager.add_output("csv")

        assert len(manager) == 2

    def test_invalid_output_type(self):
        """Test that invalid output type raises error."""
        manager = OutputManager("input.mp4")
        with pytest.raises(ValueError):
            manager.add_output("invalid_type")

    def test_specs_at_construction(self):
        """Specifications passed to the constructor become sinks."""
        manager = OutputManager("clips/walk.mp4", ["video", "csv"])
        assert [p.name for p in manager.get_output_paths()] == [
            "walk_tracked.avi", "walk_tracks.csv",
        ]

    def test_create_output(self):
        """create_output picks the class registered for the type."""
        from motiontrack.outputs import create_output

        assert isinstance(create_output("images", "in.mp4"), ImageSequenceOutput)

    def test_rejection_does_not_stop_others(self, tmp_path):
        """Other outputs still receive a frame one output rejected."""
        register_output_type("failing", FailingOutput)
        try:
            path = tmp_path / "tracks.csv"
            manager = OutputManager("input.mp4")
            manager.add_output("failing")
            manager.add_output(f"csv=filename={path}")
            manager.initialize_all(PROPS)

            track = Track(origin=(0.0, 0.0), previous=(0.0, 0.0), current=(3.0, 0.0))
            with pytest.raises(SinkRejectedError) as exc_info:
                manager.process_frame(1, blank(), {"tracks": [track]})
            manager.finalize_all()
        finally:
            OUTPUT_TYPES.pop("failing", None)

        assert exc_info.value.frame_num == 1
        assert "disk full" in str(exc_info.value)
        with open(path, newline='') as f:
            assert len(list(csv.reader(f))) == 2


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
