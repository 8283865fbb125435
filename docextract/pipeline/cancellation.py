"""
Cooperative Cancellation.

The registry is the only state shared between a caller requesting
cancellation and the worker processing a file, so all access to it goes
through a lock. Cancellation is observed at checkpoints between stages
and pages; an engine call that has already started runs to completion.

Only queued or in-flight files can be cancelled. A request for any other
id is ignored, so a finished file can be processed again later.
"""

import threading
from typing import Optional, Set

from docextract.utils.exceptions import ProcessingCancelledError


class CancellationRegistry:
    """
    Thread-safe record of pending file ids and of those asked to stop.

    Example:
        >>> registry = CancellationRegistry()
        >>> registry.cancel("file-1")
        False
        >>> registry.register("file-1")
        >>> registry.cancel("file-1")
        True
        >>> registry.is_cancelled("file-1")
        True
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Set[str] = set()
        self._cancelled: Set[str] = set()

    def register(self, file_id: str) -> None:
        """Mark a file as queued or in flight."""
        with self._lock:
            self._pending.add(file_id)

    def cancel(self, file_id: str) -> bool:
        """
        Request cancellation of a pending file.

        Returns:
            True if the file was pending, False if the request was ignored.
        """
        with self._lock:
            if file_id not in self._pending:
                return False
            self._cancelled.add(file_id)
            return True

    def is_pending(self, file_id: str) -> bool:
        with self._lock:
            return file_id in self._pending

    def is_cancelled(self, file_id: str) -> bool:
        with self._lock:
            return file_id in self._cancelled

    def discard(self, file_id: str) -> None:
        """Forget a file once its processing has finished."""
        with self._lock:
            self._pending.discard(file_id)
            self._cancelled.discard(file_id)

    def token(self, file_id: str) -> 'CancellationToken':
        return CancellationToken(self, file_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending | self._cancelled)


class CancellationToken:
    """Per-file view of a CancellationRegistry."""

    def __init__(self, registry: CancellationRegistry, file_id: str) -> None:
        self._registry = registry
        self.file_id = file_id

    @property
    def cancelled(self) -> bool:
        return self._registry.is_cancelled(self.file_id)

    def cancel(self) -> bool:
        return self._registry.cancel(self.file_id)

    def raise_if_cancelled(self, stage: Optional[str] = None) -> None:
        """
        Raises:
            ProcessingCancelledError: If cancellation was requested.
        """
        if self.cancelled:
            raise ProcessingCancelledError(self.file_id, stage)
