"""Exception classes for motiontrack."""


class MotionTrackError(Exception):
    """Base exception for all motiontrack errors."""

    pass


class AdapterContractViolation(MotionTrackError):
    """
    Raised when a vision adapter breaks its input/output contract.

    The frame cycle that raised it is aborted and the track set is left
    exactly as it was before the cycle started.
    """

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class DegenerateFrameError(AdapterContractViolation):
    """Raised when a frame's dimensions differ from the previous frame's."""

    def __init__(self, message: str, previous_shape: tuple | None = None, shape: tuple | None = None):
        self.previous_shape = previous_shape
        self.shape = shape
        super().__init__(message)


class SinkRejectedError(MotionTrackError):
    """Raised when an output sink fails to accept a frame."""

    def __init__(self, message: str, frame_num: int | None = None):
        self.frame_num = frame_num
        super().__init__(message)


class FrameSourceError(MotionTrackError):
    """Raised when a frame source cannot be opened."""

    pass


class ConfigError(MotionTrackError):
    """Raised when a configuration value is invalid."""

    pass
