"""
Core module - Protocols, configuration, errors and frame sources.
"""

from motiontrack.core.base import FrameProcessor, PassThroughProcessor
from motiontrack.core.config import (
    Config,
    TrackerConfig,
    ProcessorConfig,
    load_config,
    save_config,
)
from motiontrack.core.errors import (
    MotionTrackError,
    AdapterContractViolation,
    DegenerateFrameError,
    SinkRejectedError,
    FrameSourceError,
    ConfigError,
)
from motiontrack.core.video import (
    VideoReader,
    ImageSequenceReader,
    VideoProperties,
    FrameSource,
    decode_fourcc,
    encode_fourcc,
)

__all__ = [
    "FrameProcessor",
    "PassThroughProcessor",
    "Config",
    "TrackerConfig",
    "ProcessorConfig",
    "load_config",
    "save_config",
    "MotionTrackError",
    "AdapterContractViolation",
    "DegenerateFrameError",
    "SinkRejectedError",
    "FrameSourceError",
    "ConfigError",
    "VideoReader",
    "ImageSequenceReader",
    "VideoProperties",
    "FrameSource",
    "decode_fourcc",
    "encode_fourcc",
]
