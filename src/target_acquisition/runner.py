# runner.py
"""Continuous grab → process → notify loop on a dedicated thread."""
import sys
import threading
from typing import Callable, Optional, Protocol

import numpy as np

from .common import PipelineRun
from .pipeline import TimedPipeline, VisionPipeline


class FrameSource(Protocol):
    def grab_frame(self) -> Optional[np.ndarray]:
        ...


ResultListener = Callable[[PipelineRun], None]


class VisionRunner:
    """
    Owns exactly one pipeline instance (wrapped for timing) and drives it
    from ``source`` forever.

    A failed grab skips the iteration. Exceptions raised by the pipeline or
    the listener are not caught here: they end the runner thread and leave
    every other thread running.
    """

    def __init__(
        self,
        source: FrameSource,
        pipeline: VisionPipeline,
        listener: ResultListener,
    ):
        self.source = source
        self.timed = TimedPipeline(pipeline)
        self.listener = listener
        self.iterations = 0
        self.skipped = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> bool:
        """Returns False if the frame grab failed and the iteration was skipped."""
        frame = self.source.grab_frame()
        if frame is None:
            self.skipped += 1
            print("[Runner] Frame grab failed, skipping iteration", file=sys.stderr)
            return False

        self.listener(self.timed.process(frame))
        self.iterations += 1
        return True

    def run_forever(self) -> None:
        try:
            while not self._stop.is_set():
                self.run_once()
        except Exception as exc:
            print(f"[Runner] Vision loop died: {exc!r}", file=sys.stderr)
            raise

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(
            target=self.run_forever, name="vision-runner", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Ask the loop to exit after the current iteration."""
        self._stop.set()
