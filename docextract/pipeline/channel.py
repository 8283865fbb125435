"""
Progress Channel.

A queue of ProcessingProgress events from the worker to a consumer.
The worker closes the channel when the file reaches a terminal stage;
iterating the channel yields events until then.

Usage:
    handle = processor.submit(document)
    for event in handle.progress:
        print(event.stage.value, event.percent)
"""

import queue
from typing import Iterator, List, Optional

from .stages import ProcessingProgress


_CLOSED = object()


class ProgressChannel:
    """
    Single-producer progress stream backed by ``queue.Queue``.

    Example:
        >>> channel = ProgressChannel()
        >>> channel.put(event)
        >>> channel.close()
        >>> list(channel)
        [event]
    """

    def __init__(self) -> None:
        self._queue: queue.Queue = queue.Queue()
        self._closed = False

    def put(self, event: ProcessingProgress) -> None:
        if self._closed:
            return
        self._queue.put(event)

    # Usable directly as an ``on_progress`` callback
    __call__ = put

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, timeout: Optional[float] = None) -> Optional[ProcessingProgress]:
        """
        Next event, or None once the channel is closed and drained.

        Raises:
            queue.Empty: If ``timeout`` elapses with no event.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Keep the sentinel for any further readers
            self._queue.put(_CLOSED)
            return None
        return item

    def drain(self) -> List[ProcessingProgress]:
        """Return the events queued so far without blocking."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return events
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                return events
            events.append(item)

    def __iter__(self) -> Iterator[ProcessingProgress]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event
