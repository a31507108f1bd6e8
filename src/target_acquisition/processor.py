# processor.py
"""Glue logic that wires camera → pipeline → selector → table, plus image logging."""
import sys
import time
from typing import Optional

import serial

from .camera import Camera
from .common import LogEntry, PipelineRun, TargetMetrics
from .config import VisionConfig
from .frame_log import FrameLogQueue
from .image_logger import ImageLogger
from .pipeline import HsvContourPipeline, VisionPipeline
from .publisher import MemoryTable, MetricsTable, SerialTable, publish_metrics
from .runner import FrameSource, VisionRunner
from .selector import select_target


class TargetingProcessor:
    """The main high-level orchestrator."""

    def __init__(
        self,
        config: VisionConfig,
        source: Optional[FrameSource] = None,
        pipeline: Optional[VisionPipeline] = None,
        table: Optional[MetricsTable] = None,
    ):
        self.config = config

        # Build sub-systems
        self.camera = source if source is not None else Camera(config.camera)
        pipeline = pipeline if pipeline is not None else HsvContourPipeline(config.pipeline)
        if table is None:
            pub = config.publisher
            if pub.serial_port:
                table = SerialTable(pub.serial_port, pub.baudrate, table=pub.table)
            else:
                table = MemoryTable(pub.table)
        self.table = table

        # Image logging is decided once, at startup
        log_cfg = config.logging
        self.log_queue = FrameLogQueue()
        self.image_logger = ImageLogger(
            log_cfg.log_dir, self.log_queue, prefix=log_cfg.prefix, suffix=log_cfg.suffix
        )
        self.log_images = self.image_logger.enabled
        self.log_every_n = max(1, log_cfg.every_n)
        self.counter = 0

        self.runner = VisionRunner(self.camera, pipeline, self.handle_result)
        self.last_metrics: Optional[TargetMetrics] = None

    # ---------------------------------------------------------------------
    #                        Per-frame result handler
    # ---------------------------------------------------------------------
    def handle_result(self, run: PipelineRun) -> None:
        height, width = run.source.shape[:2]
        metrics = select_target(run.contours, (width, height))
        publish_metrics(self.table, metrics)
        self.last_metrics = metrics

        if self.log_images:
            if self.counter % self.log_every_n == 0:
                print("[Runner] Queue image to log")
                self.log_queue.push(LogEntry(run.source.copy(), metrics.count))
                self.log_queue.push(LogEntry(run.masked.copy(), metrics.count))
                print(f"[Runner] Microseconds to process: {run.duration_us}")
            self.counter += 1

    # ---------------------------------------------------------------------
    #                         Setup / run
    # ---------------------------------------------------------------------
    def setup(self) -> bool:
        """Open camera and serial link (if configured)."""
        if isinstance(self.camera, Camera) and not self.camera.open():
            return False

        if isinstance(self.table, SerialTable):
            try:
                self.table.open()
            except serial.SerialException as exc:
                print(f"[Serial] Init error: {exc}", file=sys.stderr)
        return True

    def start(self) -> None:
        """Launch the runner and logger threads; returns immediately."""
        self.runner.start()
        self.image_logger.start()
        print("[Processor] Setup complete – vision running.")

    def run(self) -> bool:
        """Set up, start the worker threads and keep the process alive."""
        if not self.setup():
            return False
        self.start()
        while True:
            time.sleep(10)
