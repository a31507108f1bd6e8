"""Tests for the runner loop and the per-frame result handler.

Everything runs against fake frame sources and pipelines; no camera needed.
"""

import threading
import time

import numpy as np
import pytest

from target_acquisition.common import PipelineRun, TargetMetrics
from target_acquisition.pipeline import PipelineOutput, TimedPipeline
from target_acquisition.processor import TargetingProcessor
from target_acquisition.publisher import MemoryTable
from target_acquisition.runner import VisionRunner


class FakeSource:
    """Yields copies of one frame; ``None`` entries in ``script`` simulate grab failures."""

    def __init__(self, frame, script=None):
        self.frame = frame
        self.script = list(script or [])
        self.grabs = 0

    def grab_frame(self):
        self.grabs += 1
        if self.script:
            ok = self.script.pop(0)
            if not ok:
                return None
        return self.frame.copy()


class FixedPipeline:
    def __init__(self, contours):
        self.contours = contours
        self.calls = 0

    def process_frame(self, frame):
        self.calls += 1
        mask = np.zeros(frame.shape[:2], dtype=np.uint8)
        return PipelineOutput(contours=self.contours, mask=mask)


class ExplodingPipeline:
    def process_frame(self, frame):
        raise RuntimeError("pipeline blew up")


@pytest.fixture
def one_target(rect_contour):
    # Centered at (330, 230) in a 640x480 frame
    return [rect_contour(320, 220, 21, 21)]


class TestRunner:

    def test_run_once_notifies_listener(self, frame, one_target):
        seen = []
        runner = VisionRunner(FakeSource(frame), FixedPipeline(one_target), seen.append)
        assert runner.run_once()
        (run,) = seen
        assert isinstance(run, PipelineRun)
        assert run.source is runner.timed.source
        assert run.source.shape == frame.shape
        assert run.duration_us == runner.timed.duration_us
        assert runner.iterations == 1

    def test_failed_grab_skips(self, frame, one_target, capsys):
        """A failed grab skips pipeline and listener, then the loop carries on."""
        pipeline = FixedPipeline(one_target)
        seen = []
        runner = VisionRunner(FakeSource(frame, script=[False, True]), pipeline, seen.append)

        assert not runner.run_once()
        assert pipeline.calls == 0 and seen == []
        assert runner.run_once()
        assert pipeline.calls == 1 and len(seen) == 1
        assert runner.skipped == 1
        assert "skipping" in capsys.readouterr().err

    def test_single_pipeline_instance(self, frame, one_target):
        pipeline = FixedPipeline(one_target)
        runner = VisionRunner(FakeSource(frame), pipeline, lambda t: None)
        for _ in range(3):
            runner.run_once()
        assert runner.timed.pipeline is pipeline
        assert pipeline.calls == 3

    def test_start_does_not_block(self, frame):
        gate = threading.Event()

        class BlockingSource:
            def grab_frame(self):
                gate.wait()
                return None

        runner = VisionRunner(BlockingSource(), FixedPipeline([]), lambda t: None)
        thread = runner.start()
        assert thread.is_alive() and thread.daemon
        runner.stop()
        gate.set()
        thread.join(timeout=2.0)
        assert not thread.is_alive()

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_pipeline_failure_kills_only_runner(self, frame, log_dir, make_config):
        """The runner thread dies on a pipeline error; the logger keeps writing."""
        proc = TargetingProcessor(
            make_config(log_dir), source=FakeSource(frame), pipeline=ExplodingPipeline(),
            table=MemoryTable(),
        )
        writes = []
        proc.image_logger.writer = lambda path, img: writes.append(path) or True

        logger_thread = proc.image_logger.start()
        runner_thread = proc.runner.start()
        runner_thread.join(timeout=2.0)
        assert not runner_thread.is_alive()

        proc.handle_result(_run_with(frame))
        deadline = time.monotonic() + 5.0
        while len(writes) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert logger_thread.is_alive()
        assert len(writes) == 2


def _run_with(frame):
    """The result of timing ``frame`` through a pipeline that finds nothing."""
    return TimedPipeline(FixedPipeline([])).process(frame)


class TestPublishing:

    def test_publishes_offsets(self, frame, one_target, tmp_path, make_config):
        table = MemoryTable()
        proc = TargetingProcessor(
            make_config(tmp_path / "none"), source=FakeSource(frame),
            pipeline=FixedPipeline(one_target), table=table,
        )
        proc.runner.run_once()
        assert table.snapshot() == {"Found": 1, "X": 10, "Y": 10}
        assert proc.last_metrics == TargetMetrics(count=1, x=10, y=10)

    def test_publishes_zero_when_empty(self, frame, tmp_path, make_config):
        table = MemoryTable()
        proc = TargetingProcessor(
            make_config(tmp_path / "none"), source=FakeSource(frame),
            pipeline=FixedPipeline([]), table=table,
        )
        proc.runner.run_once()
        assert table.snapshot() == {"Found": 0, "X": 0, "Y": 0}


class TestDecimation:

    def test_three_events_in_270_iterations(self, frame, one_target, log_dir, make_config):
        """Push-every-90 over 270 iterations → 3 events, source + mask each."""
        proc = TargetingProcessor(
            make_config(log_dir), source=FakeSource(frame),
            pipeline=FixedPipeline(one_target), table=MemoryTable(),
        )
        pushes = []
        real_push = proc.log_queue.push

        def spy(entry):
            pushes.append(proc.counter)
            real_push(entry)

        proc.log_queue.push = spy
        for _ in range(270):
            assert proc.runner.run_once()

        assert pushes == [0, 0, 90, 90, 180, 180]
        assert len(proc.log_queue) == 6
        entries = [proc.log_queue.shift() for _ in range(6)]
        assert all(e.contour_count == 1 for e in entries)
        # source frames are BGR, masks are single channel
        assert [e.frame.ndim for e in entries] == [3, 2] * 3

    def test_entries_are_copies(self, frame, one_target, log_dir, make_config):
        proc = TargetingProcessor(
            make_config(log_dir), source=FakeSource(frame),
            pipeline=FixedPipeline(one_target), table=MemoryTable(),
        )
        proc.runner.run_once()
        src, mask = proc.log_queue.shift(), proc.log_queue.shift()
        assert not np.shares_memory(src.frame, proc.runner.timed.source)
        assert not np.shares_memory(mask.frame, proc.runner.timed.masked)

    def test_counter_never_resets(self, frame, log_dir, make_config):
        proc = TargetingProcessor(
            make_config(log_dir, every_n=4), source=FakeSource(frame),
            pipeline=FixedPipeline([]), table=MemoryTable(),
        )
        for _ in range(10):
            proc.runner.run_once()
        assert proc.counter == 10
        assert len(proc.log_queue) == 6  # iterations 0, 4, 8

    def test_no_log_dir_no_pushes(self, frame, one_target, tmp_path, make_config):
        """Without the log directory nothing is queued and nothing is written."""
        proc = TargetingProcessor(
            make_config(tmp_path / "missing"), source=FakeSource(frame),
            pipeline=FixedPipeline(one_target), table=MemoryTable(),
        )
        writes = []
        proc.image_logger.writer = lambda path, img: writes.append(path) or True

        assert not proc.log_images
        assert proc.image_logger.start() is None
        for _ in range(270):
            proc.runner.run_once()
        assert len(proc.log_queue) == 0
        assert writes == []
        assert not (tmp_path / "missing").exists()
