"""
Bounded single-producer/single-consumer row queue.

Closing and cancelling are distinct terminal states:

- ``close()`` is the producer's end-of-stream signal. Buffered rows are still
  delivered, then every ``pop()`` returns ``END_OF_STREAM``.
  ``close(failed=True)`` additionally records that the producer stopped on
  an error (see ``producer_failed``).
- ``cancel()`` aborts the handoff. Buffered rows are dropped, a blocked or
  future ``push()`` raises ``QueueCancelled`` and ``pop()`` returns
  ``END_OF_STREAM`` immediately.
"""
from collections import deque
import threading
from typing import Any, Deque, Sequence

from .constants import DEFAULT_QUEUE_CAPACITY
from .errors import QueueCancelled, QueueClosedPrematurely


class _EndOfStream:
    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()


class BoundedRowQueue:
    """FIFO handoff with blocking back-pressure and explicit end-of-stream."""

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._rows: Deque[Sequence[Any]] = deque()
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)
        self._closed = False
        self._cancelled = False
        self._producer_failed = False

    def push(self, row: Sequence[Any]) -> None:
        """
        Enqueue a row, blocking while the queue is full.

        Raises:
            QueueCancelled: If the queue is (or becomes) cancelled.
            QueueClosedPrematurely: If the producer already closed the queue.
        """
        with self._not_full:
            while len(self._rows) >= self.capacity and not self._cancelled:
                self._not_full.wait()
            if self._cancelled:
                raise QueueCancelled("row queue was cancelled")
            if self._closed:
                raise QueueClosedPrematurely("push() after close()")
            self._rows.append(row)
            self._not_empty.notify()

    def pop(self) -> Any:
        """Return the next row, or END_OF_STREAM once closed and drained (or cancelled)."""
        with self._not_empty:
            while not self._rows and not (self._closed or self._cancelled):
                self._not_empty.wait()
            if self._cancelled or not self._rows:
                return END_OF_STREAM
            row = self._rows.popleft()
            self._not_full.notify()
            return row

    def close(self, failed: bool = False) -> None:
        """
        Signal that no more rows will be pushed.

        `failed` marks the end of stream as caused by a producer error, so the
        consumer can decide whether the rows it received may be committed.
        """
        with self._lock:
            if failed:
                self._producer_failed = True
            if self._closed:
                return
            self._closed = True
            self._not_empty.notify_all()

    def cancel(self) -> None:
        """Abort the handoff and release every waiter."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._rows.clear()
            self._not_full.notify_all()
            self._not_empty.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def producer_failed(self) -> bool:
        return self._producer_failed

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def __repr__(self) -> str:
        return (f"BoundedRowQueue(capacity={self.capacity}, size={len(self)}, "
                f"closed={self._closed}, cancelled={self._cancelled})")
