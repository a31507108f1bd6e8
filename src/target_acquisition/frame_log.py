# frame_log.py
"""Hand-off queue between the runner thread and the image logger thread."""
import queue

from .common import LogEntry


class FrameLogQueue:
    """
    Unbounded FIFO of :class:`LogEntry` objects.

    ``push`` never waits on the consumer, so the runner only pays for the
    enqueue. Growth is unbounded; a slow disk makes the queue longer, never
    the vision loop slower. ``shift`` blocks until an entry is available.
    """

    def __init__(self) -> None:
        self._q: "queue.Queue[LogEntry]" = queue.Queue()

    def push(self, entry: LogEntry) -> None:
        self._q.put_nowait(entry)

    def shift(self) -> LogEntry:
        return self._q.get()

    def __len__(self) -> int:
        # Approximate under concurrent use
        return self._q.qsize()
