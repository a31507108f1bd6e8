# config.py
"""Typed configuration blobs for the whole system."""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

DEFAULT_CONFIG_PATH = "/boot/vision.json"


class ConfigError(ValueError):
    """Raised when the JSON config file is unreadable or malformed."""


# ---------------------- Camera ----------------------
@dataclass(frozen=True)
class CameraConfig:
    name: str = "front"
    device_index: int = 0
    width: int = 640
    height: int = 480
    fps_request: int = 30
    use_v4l2: bool = True
    fourcc_str: str = "MJPG"
    max_reopens: int = 5
    reopen_backoff_s: float = 1.0  # wait between attempts once max_reopens is spent


# --------------------- Pipeline ---------------------
@dataclass(frozen=True)
class PipelineConfig:
    hsv_lower: Tuple[int, int, int] = (55, 120, 60)
    hsv_upper: Tuple[int, int, int] = (95, 255, 255)
    erode_iterations: int = 1
    min_contour_area: float = 40.0
    min_contour_perimeter: float = 20.0


# --------------------- Logging ----------------------
@dataclass(frozen=True)
class LoggingConfig:
    log_dir: str = "/mnt/log/img"
    every_n: int = 90
    prefix: str = "image"
    suffix: str = ".jpg"


# -------------------- Publisher ---------------------
@dataclass(frozen=True)
class PublisherConfig:
    serial_port: Optional[str] = None   # e.g. "/dev/ttyUSB0"; None keeps values in memory
    baudrate: int = 115_200
    table: str = "Vision"


@dataclass(frozen=True)
class VisionConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    publisher: PublisherConfig = field(default_factory=PublisherConfig)


# ---------------------- Loader ----------------------
_SECTIONS = {
    "camera": CameraConfig,
    "pipeline": PipelineConfig,
    "logging": LoggingConfig,
    "publisher": PublisherConfig,
}


def _build_section(path: Path, name: str, cls, raw: Any):
    if not isinstance(raw, dict):
        raise ConfigError(f"config error in '{path}': '{name}' must be a JSON object")

    known = {f.name: f for f in fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            raise ConfigError(f"config error in '{path}': unknown key '{name}.{key}'")
        default = getattr(cls(), key)
        if isinstance(default, tuple):
            if not isinstance(value, list) or len(value) != len(default):
                raise ConfigError(
                    f"config error in '{path}': '{name}.{key}' must be a list of "
                    f"{len(default)} numbers"
                )
            value = tuple(value)
        kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path | None = None) -> VisionConfig:
    """Read a JSON config file; ``None`` returns the built-in defaults.

    Every section and every key is optional. Unknown keys are rejected so
    typos do not silently fall back to defaults.
    """
    if path is None:
        return VisionConfig()

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)
    except OSError as exc:
        raise ConfigError(f"could not open '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config error in '{path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"config error in '{path}': must be JSON object")

    sections: Dict[str, Any] = {}
    for name, value in raw.items():
        cls = _SECTIONS.get(name)
        if cls is None:
            raise ConfigError(f"config error in '{path}': unknown section '{name}'")
        sections[name] = _build_section(path, name, cls, value)

    print(f"[Config] Loaded {path}")
    return VisionConfig(**sections)
