"""Unit tests for the per-second ring buffer."""
from __future__ import annotations

import pytest

from flowmeter.models import Bucket, FlowBuffer


class TestBucket:
    def test_accumulate_and_reset(self) -> None:
        bucket = Bucket()
        bucket.accumulate(1.5)
        bucket.accumulate(2.5)
        assert (bucket.count, bucket.sum) == (2, 4.0)

        bucket.reset()
        assert (bucket.count, bucket.sum) == (0, 0.0)


class TestFlowBuffer:
    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError):
            FlowBuffer(0)

    def test_average_before_first_advance(self) -> None:
        buffer = FlowBuffer(4)
        values = [3.0, 4.5, -1.0, 10.0]
        for value in values:
            buffer.add_sample(value)

        assert buffer.window_average(1) == pytest.approx(sum(values) / len(values))

    def test_advance_resets_only_new_head(self) -> None:
        buffer = FlowBuffer(3)
        for step in range(3):
            buffer.add_sample(float(step + 1))
            if step < 2:
                buffer.advance()
        before = buffer.buckets
        assert buffer.head == 2

        buffer.advance()
        after = buffer.buckets

        assert buffer.head == 0
        assert after[0] == Bucket(0, 0.0)
        assert after[1] == before[1]
        assert after[2] == before[2]

    def test_head_wraps_around(self) -> None:
        buffer = FlowBuffer(2)
        buffer.advance()
        buffer.advance()
        assert buffer.head == 0

    def test_window_saturates_at_capacity(self) -> None:
        buffer = FlowBuffer(3)
        for value in (1.0, 2.0, 3.0, 4.0):
            buffer.add_sample(value)
            buffer.advance()
        buffer.add_sample(9.0)

        full = buffer.window_average(3)
        for n in (3, 4, 100):
            assert buffer.window_average(n) == full
        # the first two samples were rotated out
        assert full == pytest.approx((3.0 + 4.0 + 9.0) / 3)

    def test_window_walks_backwards_with_wraparound(self) -> None:
        buffer = FlowBuffer(4)
        for value in (10.0, 20.0, 30.0, 40.0, 50.0):
            buffer.add_sample(value)
            buffer.advance()
        buffer.add_sample(60.0)

        stats = buffer.window_stats(2)
        assert (stats.count, stats.sum) == (2, 110.0)

    def test_zero_window_has_no_data(self) -> None:
        buffer = FlowBuffer(3)
        buffer.add_sample(5.0)
        assert buffer.window_average(0) is None
        assert buffer.window_stats(0).count == 0

    def test_genuine_zero_average_is_not_no_data(self) -> None:
        buffer = FlowBuffer(3)
        buffer.add_sample(-2.0)
        buffer.add_sample(2.0)
        assert buffer.window_average(1) == 0.0

    def test_everything_expires_after_capacity_plus_one_advances(self) -> None:
        buffer = FlowBuffer(3)
        for value in (1.0, 2.0, 3.0):
            buffer.add_sample(value)
            buffer.advance()

        for _ in range(buffer.capacity + 1):
            buffer.advance()

        assert all(bucket == Bucket() for bucket in buffer.buckets)
        assert buffer.window_average(buffer.capacity) is None

    def test_example_scenario(self) -> None:
        buffer = FlowBuffer(5)
        buffer.add_sample(10.0)
        buffer.add_sample(20.0)
        assert buffer.buckets[buffer.head] == Bucket(2, 30.0)
        assert buffer.window_average(1) == 15.0

        buffer.advance()
        assert buffer.buckets[buffer.head] == Bucket()
        buffer.add_sample(5.0)

        assert buffer.window_average(2) == pytest.approx(35.0 / 3)
