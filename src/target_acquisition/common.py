# common.py
"""Objects that are shared across multiple modules."""
from dataclasses import dataclass
from typing import List, NamedTuple

import numpy as np


class BoundingBox(NamedTuple):
    """Axis-aligned rectangle in pixel coordinates (top-left origin)."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center(self) -> tuple:
        # Midpoint of top-left and bottom-right corners, halves rounded to even
        return (
            round((2 * self.x + self.width) / 2),
            round((2 * self.y + self.height) / 2),
        )


@dataclass(frozen=True)
class TargetMetrics:
    """
    Offset of the selected target from frame center.
    ``x`` grows to the right, ``y`` grows *upwards* (flipped from pixel rows).
    """
    count: int
    x: int
    y: int


@dataclass(frozen=True)
class LogEntry:
    """A frame handed to the image logger, with the contour count at capture time."""
    frame: np.ndarray
    contour_count: int


@dataclass(frozen=True)
class PipelineRun:
    source: np.ndarray
    masked: np.ndarray
    contours: List[np.ndarray]
    duration_us: int
