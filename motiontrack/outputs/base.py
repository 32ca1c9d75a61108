"""
Output sink building blocks.

Sinks are configured from short strings of the form
``type=key=value:key=value`` (``OutputSpec``) and implement ``BaseOutput``.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import numpy as np

# A new option starts at a colon followed by ``name=``
_OPTION_BOUNDARY = re.compile(r':(?=\s*[A-Za-z_][\w-]*\s*=)')
_TRUE_WORDS = frozenset({'1', 'true', 'yes', 'on'})


class OutputSpec:
    """
    Sink type plus options, parsed from a command line string.

    Colons that are not followed by ``name=`` stay part of the current
    value, so Windows paths survive:

        >>> spec = OutputSpec("images=prefix=C:/out/frame_:digits=4")
        >>> spec.output_type, spec.get('prefix'), spec.get_int('digits')
        ('images', 'C:/out/frame_', 4)
    """

    def __init__(self, spec_string: str):
        if not spec_string or not spec_string.strip():
            raise ValueError("Empty output specification")

        output_type, _, rest = spec_string.partition('=')
        self.output_type: str = output_type.strip().lower()
        self.options: dict[str, str] = {}

        for item in _OPTION_BOUNDARY.split(rest) if rest else []:
            key, sep, value = item.partition('=')
            if not sep:
                raise ValueError(f"Malformed output option '{item}' in '{spec_string}'")
            self.options[key.strip().lower()] = value.strip()

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key.lower(), default)

    def get_int(self, key: str, default: int = 0) -> int:
        """Option as an integer, ``default`` if absent or not a number."""
        try:
            return int(self.options[key.lower()])
        except (KeyError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        return default if value is None else value.lower() in _TRUE_WORDS

    def __repr__(self) -> str:
        return f"OutputSpec({self.output_type!r}, {self.options!r})"


class BaseOutput(ABC):
    """
    A sink the video processor loop writes each processed frame to.

    A sink that cannot accept a frame raises ``SinkRejectedError``; the
    frame is not offered again.

    Subclasses set ``default_suffix`` and ``default_extension``, which name
    the output after the input (``clip.mp4`` -> ``clip_tracked.avi``) when
    no ``filename`` option is given.
    """

    default_suffix: str = "_out"
    default_extension: str = "dat"

    def __init__(self, spec: OutputSpec, input_path: str):
        """
        Args:
            spec: Parsed sink options
            input_path: Input file (or camera label) default names derive from
        """
        self.spec = spec
        self.input_path = Path(input_path)
        self.output_path = self._resolve_output_path()

    def _resolve_output_path(self) -> Path:
        filename = self.spec.get('filename')
        if filename:
            return Path(filename)
        return Path(f"{self.input_path.stem}{self.default_suffix}.{self.default_extension}")

    @abstractmethod
    def initialize(self, video_props: dict) -> None:
        """
        Open the sink.

        Args:
            video_props: ``VideoProperties.to_dict()`` of the input
        """

    @abstractmethod
    def process_frame(
        self,
        frame_num: int,
        frame: np.ndarray,
        tracking_data: dict,
    ) -> None:
        """
        Write one processed frame.

        Args:
            frame_num: 1-indexed frame number
            frame: Processed BGR frame
            tracking_data: Frame processor data, ``tracks`` and ``stats``
                for the feature tracker

        Raises:
            SinkRejectedError: If the frame could not be written
        """

    @abstractmethod
    def finalize(self) -> None:
        """Flush and close the sink."""

    def get_output_path(self) -> Path:
        return self.output_path

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize()
        return False
