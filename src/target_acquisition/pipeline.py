# pipeline.py
"""Vision pipeline interface, the default HSV contour pipeline and its timing wrapper."""
import time
from typing import List, NamedTuple, Optional, Protocol

import cv2
import numpy as np

from .common import PipelineRun
from .config import PipelineConfig


class PipelineOutput(NamedTuple):
    contours: List[np.ndarray]
    mask: np.ndarray


class VisionPipeline(Protocol):
    """Anything that turns one BGR frame into contours plus a processed mask."""

    def process_frame(self, frame: np.ndarray) -> PipelineOutput:
        ...


class HsvContourPipeline:
    """HSV threshold → erode → external contours → area/perimeter filter."""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self._lower = np.array(config.hsv_lower, dtype=np.uint8)
        self._upper = np.array(config.hsv_upper, dtype=np.uint8)
        self._kernel = np.ones((3, 3), dtype=np.uint8)

    def process_frame(self, frame: np.ndarray) -> PipelineOutput:
        hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
        mask = cv2.inRange(hsv, self._lower, self._upper)
        if self.config.erode_iterations > 0:
            mask = cv2.erode(mask, self._kernel, iterations=self.config.erode_iterations)

        found, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        contours = [
            c for c in found
            if cv2.contourArea(c) >= self.config.min_contour_area
            and cv2.arcLength(c, True) >= self.config.min_contour_perimeter
        ]
        return PipelineOutput(contours=contours, mask=mask)


class TimedPipeline:
    """
    Wraps a single pipeline instance, measuring each call and keeping the
    source frame, mask and raw contours of the latest run.
    Not safe for concurrent use; the runner calls it from one thread only.
    """

    def __init__(self, pipeline: VisionPipeline):
        self.pipeline = pipeline
        self.source: Optional[np.ndarray] = None
        self.masked: Optional[np.ndarray] = None
        self.contours: List[np.ndarray] = []
        self.duration_us = 0

    def process(self, frame: np.ndarray) -> PipelineRun:
        start = time.perf_counter_ns()
        self.source = frame
        out = self.pipeline.process_frame(frame)
        end = time.perf_counter_ns()

        self.duration_us = (end - start) // 1000
        self.masked = out.mask
        self.contours = list(out.contours)
        return PipelineRun(
            source=self.source,
            masked=self.masked,
            contours=self.contours,
            duration_us=self.duration_us,
        )
