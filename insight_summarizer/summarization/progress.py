"""
Progress sinks for summary generation.

The orchestrator reports progress through a plain callable invoked
synchronously, in stage order. A UI running generation on a worker thread
can instead hand the orchestrator a QueueProgressSink and drain the queue
from its own thread; events arrive in the same order either way.

Usage:
    ui_queue = Queue()
    orchestrator.summarize(documents, progress_callback=QueueProgressSink(ui_queue))

    # UI thread:
    kind, event = ui_queue.get()   # ('progress', ProgressEvent(...))
"""

from __future__ import annotations

from queue import Queue
from typing import Callable

from .result_types import ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


class QueueProgressSink:
    """
    Forwards progress events to a queue as ('progress', event) tuples.

    Args:
        ui_queue: Queue consumed by the UI thread.
        message_type: First element of each queued tuple.
    """

    def __init__(self, ui_queue: Queue, message_type: str = 'progress'):
        self.ui_queue = ui_queue
        self.message_type = message_type

    def __call__(self, event: ProgressEvent) -> None:
        self.ui_queue.put((self.message_type, event))
