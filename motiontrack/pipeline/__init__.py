"""
Pipeline module - Frame processing loop.

This module provides:
- VideoProcessor: Drive a frame processor over a frame source into outputs
- RunSummary: Frame counts of a finished run
"""

from motiontrack.pipeline.runner import VideoProcessor, RunSummary

__all__ = [
    "VideoProcessor",
    "RunSummary",
]
