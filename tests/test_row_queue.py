"""
Unit tests for the bounded row queue.
"""
import random
import threading
import time

import pytest

from dbfload.core.errors import QueueCancelled, QueueClosedPrematurely
from dbfload.core.row_queue import BoundedRowQueue, END_OF_STREAM


def _start(target, *args):
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


class TestBoundedRowQueue:
    """Test suite for BoundedRowQueue."""

    def test_fifo_then_end_of_stream(self):
        """Rows come out in push order, then end-of-stream on every later pop."""
        queue = BoundedRowQueue(capacity=4)
        for i in range(3):
            queue.push((i,))
        queue.close()

        assert [queue.pop() for _ in range(3)] == [(0,), (1,), (2,)]
        assert queue.pop() is END_OF_STREAM
        assert queue.pop() is END_OF_STREAM

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            BoundedRowQueue(capacity=0)

    def test_push_after_close_raises(self):
        queue = BoundedRowQueue(capacity=2)
        queue.close()
        with pytest.raises(QueueClosedPrematurely):
            queue.push(("late",))

    def test_close_is_idempotent(self):
        queue = BoundedRowQueue(capacity=2)
        queue.push((1,))
        queue.close()
        queue.close()
        assert queue.pop() == (1,)
        assert queue.pop() is END_OF_STREAM
        assert not queue.producer_failed

    def test_failed_close_is_visible_to_consumer(self):
        queue = BoundedRowQueue(capacity=2)
        queue.push((1,))
        queue.close(failed=True)
        queue.close()
        assert queue.pop() == (1,)
        assert queue.pop() is END_OF_STREAM
        assert queue.producer_failed

    def test_push_blocks_when_full(self):
        """The (C+1)-th push waits until a pop frees a slot."""
        queue = BoundedRowQueue(capacity=2)
        queue.push((1,))
        queue.push((2,))
        pushed = threading.Event()

        def producer():
            queue.push((3,))
            pushed.set()

        thread = _start(producer)
        assert not pushed.wait(0.2)
        assert len(queue) == 2

        assert queue.pop() == (1,)
        assert pushed.wait(2.0)
        thread.join(2.0)
        assert len(queue) == 2

    def test_pop_blocks_until_push(self):
        queue = BoundedRowQueue(capacity=2)
        result = []
        thread = _start(lambda: result.append(queue.pop()))
        time.sleep(0.1)
        assert result == []

        queue.push(("row",))
        thread.join(2.0)
        assert result == [("row",)]

    def test_close_wakes_blocked_consumer(self):
        queue = BoundedRowQueue(capacity=2)
        result = []
        thread = _start(lambda: result.append(queue.pop()))
        time.sleep(0.1)
        queue.close()
        thread.join(2.0)
        assert result == [END_OF_STREAM]

    def test_cancel_releases_blocked_producer(self):
        queue = BoundedRowQueue(capacity=1)
        queue.push((1,))
        errors = []

        def producer():
            try:
                queue.push((2,))
            except QueueCancelled as e:
                errors.append(e)

        thread = _start(producer)
        time.sleep(0.1)
        queue.cancel()
        thread.join(2.0)

        assert not thread.is_alive()
        assert len(errors) == 1
        assert queue.cancelled
        assert len(queue) == 0

    def test_cancel_ends_stream_for_consumer(self):
        queue = BoundedRowQueue(capacity=4)
        queue.push((1,))
        queue.cancel()
        assert queue.pop() is END_OF_STREAM
        with pytest.raises(QueueCancelled):
            queue.push((2,))

    @pytest.mark.parametrize("seed", [1, 7, 42, 1234])
    def test_order_preserved_under_random_scheduling(self, seed):
        """Randomized rows and delays never reorder, drop or duplicate rows."""
        rng = random.Random(seed)
        rows = [(i, rng.random(), "x" * rng.randint(0, 5)) for i in range(300)]
        producer_delays = [rng.random() < 0.05 for _ in rows]
        consumer_delays = [rng.random() < 0.05 for _ in rows]
        queue = BoundedRowQueue(capacity=rng.randint(1, 16))
        received = []
        max_seen = []

        def producer():
            for row, pause in zip(rows, producer_delays):
                if pause:
                    time.sleep(0.001)
                queue.push(row)
            queue.close()

        def consumer():
            index = 0
            while True:
                max_seen.append(len(queue))
                row = queue.pop()
                if row is END_OF_STREAM:
                    break
                if consumer_delays[index]:
                    time.sleep(0.001)
                received.append(row)
                index += 1

        threads = [_start(producer), _start(consumer)]
        for thread in threads:
            thread.join(10.0)

        assert received == rows
        assert max(max_seen) <= queue.capacity
