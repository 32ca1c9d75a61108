"""
Tests for the video processor loop.
"""

import numpy as np
import pytest

from motiontrack.core.config import ProcessorConfig
from motiontrack.core.errors import AdapterContractViolation, SinkRejectedError
from motiontrack.core.video import VideoProperties
from motiontrack.pipeline import VideoProcessor


class ListSource:
    """Frame source over an in-memory list of frames."""

    def __init__(self, frames, fps: float = 25.0):
        self.frames = list(frames)
        self.closed = False
        height, width = self.frames[0].shape[:2] if self.frames else (0, 0)
        self._props = VideoProperties(width, height, fps, len(self.frames), fourcc="XVID")

    @property
    def properties(self) -> VideoProperties:
        return self._props

    def read_frame(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def close(self) -> None:
        self.closed = True


class RecordingOutputs:
    """Stand-in for OutputManager recording what it receives."""

    def __init__(self, reject=()):
        self.reject = set(reject)
        self.frames = []
        self.initialized = None
        self.finalized = False

    def initialize_all(self, video_props):
        self.initialized = video_props

    def process_frame(self, frame_num, frame, tracking_data):
        if frame_num in self.reject:
            raise SinkRejectedError("rejected", frame_num)
        self.frames.append((frame_num, frame, tracking_data))

    def finalize_all(self):
        self.finalized = True


class Inverter:
    """Frame processor inverting each frame."""

    def __init__(self):
        self.seen = []

    def process_frame(self, frame_num, frame):
        self.seen.append(frame_num)
        return 255 - frame

    def tracking_data(self):
        return {"tracks": [], "count": len(self.seen)}


class Exploding:
    """Frame processor failing on its second frame."""

    def process_frame(self, frame_num, frame):
        if frame_num == 2:
            raise AdapterContractViolation("bad flow output", expected=3, actual=2)
        return frame


def frames(n: int = 5):
    return [np.full((8, 8, 3), i, dtype=np.uint8) for i in range(n)]


NO_DISPLAY = ProcessorConfig(display=False)


class TestVideoProcessor:
    """Tests for VideoProcessor."""

    def test_runs_to_end(self):
        """All frames are processed and handed to the outputs."""
        outputs = RecordingOutputs()
        proc = Inverter()
        summary = VideoProcessor(ListSource(frames()), proc, outputs, NO_DISPLAY).run()

        assert summary.frames == 5
        assert summary.rejected == 0
        assert summary.stopped is False
        assert proc.seen == [1, 2, 3, 4, 5]
        assert [n for n, _, _ in outputs.frames] == [1, 2, 3, 4, 5]
        assert outputs.frames[0][1].max() == 255
        assert outputs.frames[-1][2]["count"] == 5
        assert outputs.initialized["fourcc"] == "XVID"
        assert outputs.finalized is True

    def test_stop_at_frame(self):
        """Processing stops after the configured frame."""
        config = ProcessorConfig(display=False, stop_at_frame=3)
        summary = VideoProcessor(ListSource(frames()), Inverter(), None, config).run()

        assert summary.frames == 3
        assert summary.stopped is True

    def test_process_switched_off(self):
        """With processing off, outputs receive the input frames."""
        config = ProcessorConfig(display=False, call_process=False)
        outputs = RecordingOutputs()
        proc = Inverter()
        VideoProcessor(ListSource(frames(2)), proc, outputs, config).run()

        assert proc.seen == []
        assert outputs.frames[1][1].max() == 1

    def test_rejected_frames_are_skipped(self):
        """A rejected frame is counted and the loop carries on."""
        outputs = RecordingOutputs(reject={2, 4})
        summary = VideoProcessor(ListSource(frames()), Inverter(), outputs, NO_DISPLAY).run()

        assert summary.frames == 5
        assert summary.rejected == 2
        assert [n for n, _, _ in outputs.frames] == [1, 3, 5]

    def test_processor_error_propagates(self):
        """Processor errors end the run; outputs are still finalized."""
        outputs = RecordingOutputs()
        vp = VideoProcessor(ListSource(frames()), Exploding(), outputs, NO_DISPLAY)

        with pytest.raises(AdapterContractViolation):
            vp.run()

        assert outputs.finalized is True
        assert vp.frame_number == 2

    def test_empty_stream(self):
        """An empty source ends the run immediately."""
        source = ListSource([np.zeros((4, 4, 3), dtype=np.uint8)])
        source.frames.clear()
        summary = VideoProcessor(source, Inverter(), None, NO_DISPLAY).run()
        assert summary.frames == 0

    def test_stop_between_cycles(self):
        """stop() ends the loop after the current cycle."""
        vp = VideoProcessor(ListSource(frames()), None, None, NO_DISPLAY)
        assert vp.process_next() is True
        vp.stop()
        assert vp.is_stopped is True

    def test_source_accessors(self):
        """Frame rate, codec and size come from the source."""
        vp = VideoProcessor(ListSource(frames(), fps=12.5), None, None, NO_DISPLAY)
        assert vp.frame_rate == 12.5
        assert vp.codec == "XVID"
        assert vp.frame_size == (8, 8)

    def test_video_frame_range(self, tmp_path):
        """The loop honours the reader's first and last frame."""
        import cv2
        from motiontrack.core.video import VideoReader

        path = tmp_path / "clip.avi"
        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (64, 48))
        for value in range(10):
            writer.write(np.full((48, 64, 3), value * 20, dtype=np.uint8))
        writer.release()

        outputs = RecordingOutputs()
        with VideoReader(path, last_frame=3) as reader:
            summary = VideoProcessor(reader, None, outputs, NO_DISPLAY).run()
        assert summary.frames == 3
        assert len(outputs.frames) == 3

        with VideoReader(path, first_frame=4, last_frame=6) as reader:
            summary = VideoProcessor(reader, None, None, NO_DISPLAY).run()
        assert summary.frames == 3

    def test_with_feature_tracker(self):
        """The tracker plugs into the loop and feeds tracks to the outputs."""
        from motiontrack.tracking import FeatureTracker, FlowResult

        class Detector:
            def detect(self, gray, max_count, quality_level, min_distance):
                return np.array([[2.0, 2.0], [5.0, 5.0]])

        class Flow:
            def compute(self, prev_gray, curr_gray, prev_points):
                n = len(prev_points)
                return FlowResult(prev_points + 3.0, np.ones(n, dtype=bool), np.zeros(n))

        outputs = RecordingOutputs()
        tracker = FeatureTracker(detector=Detector(), flow=Flow())
        VideoProcessor(ListSource(frames(2)), tracker, outputs, NO_DISPLAY).run()

        tracks = outputs.frames[0][2]["tracks"]
        assert [t.current for t in tracks] == [(5.0, 5.0), (8.0, 8.0)]
        assert outputs.frames[1][2]["stats"].frame == 2


class TestCLI:
    """Tests for the command line interface."""

    def test_no_command(self, capsys):
        """Without a command the help is printed."""
        from motiontrack.__main__ import main

        assert main([]) == 0
        assert "track" in capsys.readouterr().out

    def test_config_command(self, tmp_path):
        """The config command writes a loadable default configuration."""
        from motiontrack.__main__ import main
        from motiontrack.core.config import load_config

        path = tmp_path / "motiontrack.json"
        assert main(["config", "-o", str(path)]) == 0

        config = load_config(path)
        assert config.tracker.max_count == 500

    def test_track_image_sequence(self, tmp_path):
        """Tracking an image sequence writes the requested outputs."""
        import cv2
        from motiontrack.__main__ import main

        paths = []
        for i in range(3):
            frame = np.zeros((48, 64, 3), dtype=np.uint8)
            cv2.rectangle(frame, (10 + 3 * i, 10), (30 + 3 * i, 30), (255, 255, 255), -1)
            path = tmp_path / f"in_{i}.png"
            cv2.imwrite(str(path), frame)
            paths.append(str(path))

        csv_path = tmp_path / "tracks.csv"
        prefix = tmp_path / "out" / "f_"
        code = main([
            "track", *paths, "--no-display", "-q",
            "-out", f"csv=filename={csv_path}",
            "-out", f"images=prefix={prefix}",
        ])

        assert code == 0
        assert csv_path.exists()
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == [
            "f_000.png", "f_001.png", "f_002.png",
        ]

    def test_track_missing_input(self, tmp_path, capsys):
        """A missing input file is reported with a non-zero exit code."""
        from motiontrack.__main__ import main

        code = main(["track", str(tmp_path / "missing.mp4"), "--no-display"])
        assert code == 1
        assert "Error" in capsys.readouterr().err


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
