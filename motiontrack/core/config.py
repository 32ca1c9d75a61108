"""
Configuration management for motiontrack.

Provides dataclass-based settings for the tracking engine and the video
processor loop, loadable from JSON files and overridable through
environment variables.
"""

import json
import os
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any

from motiontrack.core.errors import ConfigError


@dataclass
class TrackerConfig:
    """Settings for the feature tracking engine."""
    # Detection (Shi-Tomasi)
    max_count: int = 500
    quality_level: float = 0.01
    min_distance: float = 10.0
    block_size: int = 3
    # Lifecycle policy
    low_water_mark: int = 10
    min_displacement: float = 2.0
    require_status: bool = True
    # Lucas-Kanade optical flow
    win_size: tuple[int, int] = (21, 21)
    max_level: int = 3
    criteria_count: int = 30
    criteria_eps: float = 0.01

    def validate(self) -> None:
        """Check value ranges the OpenCV adapters depend on."""
        if self.max_count <= 0:
            raise ConfigError(f"max_count must be positive, got {self.max_count}")
        if not 0.0 < self.quality_level < 1.0:
            raise ConfigError(
                f"quality_level must be in (0, 1), got {self.quality_level}"
            )
        if self.min_distance < 0:
            raise ConfigError(f"min_distance must be >= 0, got {self.min_distance}")
        if self.low_water_mark < 0:
            raise ConfigError(
                f"low_water_mark must be >= 0, got {self.low_water_mark}"
            )
        if self.min_displacement < 0:
            raise ConfigError(
                f"min_displacement must be >= 0, got {self.min_displacement}"
            )


@dataclass
class ProcessorConfig:
    """Settings for the video processor loop."""
    delay_ms: int = 0
    stop_at_frame: int | None = None
    display: bool = True
    call_process: bool = True
    window_name: str = "Tracked Features"
    input_window_name: str | None = None


@dataclass
class Config:
    """
    Main configuration container.

    Example:
        config = Config.load("motiontrack.json")
        tracker = FeatureTracker(config.tracker)
    """
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)

    @classmethod
    def load(cls, path: str | Path) -> "Config":
        """Load configuration from a JSON file."""
        return load_config(path)

    def save(self, path: str | Path) -> None:
        """Save configuration to a JSON file."""
        save_config(self, path)

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        tracker = asdict(self.tracker)
        tracker["win_size"] = list(self.tracker.win_size)
        return {
            "tracker": tracker,
            "processor": asdict(self.processor),
        }


def _build(cls, data: dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**data)


def load_config(path: str | Path) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Parsed Config object

    Raises:
        FileNotFoundError: If the config file doesn't exist
        json.JSONDecodeError: If the JSON is invalid
        ConfigError: If a section holds unknown keys or invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    tracker_data = dict(data.get("tracker", {}))
    if "win_size" in tracker_data:
        tracker_data["win_size"] = tuple(tracker_data["win_size"])
    tracker = _build(TrackerConfig, tracker_data)
    tracker.validate()

    processor = _build(ProcessorConfig, data.get("processor", {}))

    return Config(tracker=tracker, processor=processor)


def save_config(config: Config, path: str | Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration object to save
        path: Output path for the JSON file
    """
    path = Path(path)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)


def create_example_config(path: str | Path = "motiontrack.json") -> Config:
    """Write a configuration file holding the default settings."""
    config = Config()
    config.save(path)
    print(f"Created example configuration: {path}")
    return config


def get_env_config(prefix: str = "MOTIONTRACK_") -> dict[str, Any]:
    """
    Get configuration from environment variables.

    All environment variables starting with the prefix will be included.
    Variable names are converted to lowercase with the prefix removed.

    Example:
        MOTIONTRACK_MIN_DISPLACEMENT=3.5 -> {"min_displacement": "3.5"}
    """
    config = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            config_key = key[len(prefix):].lower()
            config[config_key] = value
    return config


def _coerce(name: str, raw: str, current: Any) -> Any:
    try:
        if current is None:
            # Optional fields: stop_at_frame is the only numeric one
            return int(raw) if raw.isdigit() else raw
        if isinstance(current, bool):
            return raw.lower() in ("true", "yes", "1", "on")
        if isinstance(current, int):
            return int(raw)
        if isinstance(current, float):
            return float(raw)
        if isinstance(current, tuple):
            return tuple(int(v) for v in raw.replace("x", ",").split(","))
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e
    return raw


def apply_env_overrides(config: Config, env: dict[str, str] | None = None) -> Config:
    """
    Override config fields from environment-style key/value pairs.

    Keys are matched against TrackerConfig first, then ProcessorConfig.
    Values are coerced to the type of the field's current value.
    """
    if env is None:
        env = get_env_config()

    for key, raw in env.items():
        for section in (config.tracker, config.processor):
            if hasattr(section, key):
                setattr(section, key, _coerce(key, raw, getattr(section, key)))
                break

    config.tracker.validate()
    return config
