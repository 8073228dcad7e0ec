"""Tests for sample clock arithmetic and time sources."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from heartbeat.core.clock import (
    EPOCH,
    AsyncioTimeSource,
    VirtualTimeSource,
    sample_begin,
    to_timedelta,
)
from heartbeat.core.errors import InvalidArgumentError


class TestSampleBegin:
    """Tests for sample_begin."""

    def test_mid_window(self):
        """Test the boundary is the start of the containing window."""
        now = datetime(2026, 10, 18, 12, 0, 7, tzinfo=timezone.utc)
        assert sample_begin(now, timedelta(seconds=5)) == datetime(
            2026, 10, 18, 12, 0, 5, tzinfo=timezone.utc
        )

    def test_on_boundary(self):
        """Test a timestamp on a boundary maps to itself."""
        now = datetime(2026, 10, 18, 12, 0, 10, tzinfo=timezone.utc)
        assert sample_begin(now, timedelta(seconds=10)) == now

    def test_sub_second_precision(self):
        """Test microseconds are carried exactly."""
        now = EPOCH + timedelta(seconds=3, microseconds=999_999)
        assert sample_begin(now, timedelta(milliseconds=250)) == EPOCH + timedelta(
            seconds=3, milliseconds=750
        )

    def test_period_not_dividing_a_day(self):
        """Test boundaries are counted from tick zero."""
        now = EPOCH + timedelta(seconds=17)
        assert sample_begin(now, timedelta(seconds=7)) == EPOCH + timedelta(seconds=14)

    def test_naive_timestamp_is_utc(self):
        """Test naive timestamps are treated as UTC."""
        naive = datetime(2026, 10, 18, 12, 0, 7)
        assert sample_begin(naive, timedelta(seconds=5)) == datetime(
            2026, 10, 18, 12, 0, 5, tzinfo=timezone.utc
        )

    def test_other_timezone_normalized(self):
        """Test the same instant gives the same boundary in any timezone."""
        utc = datetime(2026, 10, 18, 12, 0, 7, tzinfo=timezone.utc)
        local = utc.astimezone(timezone(timedelta(hours=5, minutes=30)))
        assert sample_begin(local, timedelta(seconds=5)) == sample_begin(utc, timedelta(seconds=5))

    @pytest.mark.parametrize("period", [timedelta(0), timedelta(seconds=-10)])
    def test_non_positive_period(self, period):
        """Test zero and negative periods are rejected."""
        with pytest.raises(InvalidArgumentError):
            sample_begin(EPOCH, period)


class TestToTimedelta:
    """Tests for to_timedelta."""

    def test_passthrough(self):
        assert to_timedelta(timedelta(seconds=3)) == timedelta(seconds=3)

    def test_seconds(self):
        assert to_timedelta(2) == timedelta(seconds=2)
        assert to_timedelta(0.5) == timedelta(milliseconds=500)

    @pytest.mark.parametrize("value", ["5", None, True])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError):
            to_timedelta(value)


class TestVirtualTimeSource:
    """Tests for VirtualTimeSource."""

    @pytest.mark.asyncio
    async def test_fires_in_due_order(self):
        """Test timers fire in due-time order at their due time."""
        clock = VirtualTimeSource()
        fired = []

        clock.call_at(EPOCH + timedelta(seconds=3), lambda: fired.append(("b", clock.now())))
        clock.call_at(EPOCH + timedelta(seconds=1), lambda: fired.append(("a", clock.now())))
        clock.call_at(EPOCH + timedelta(seconds=9), lambda: fired.append(("c", clock.now())))

        await clock.advance_by(timedelta(seconds=5))

        assert fired == [
            ("a", EPOCH + timedelta(seconds=1)),
            ("b", EPOCH + timedelta(seconds=3)),
        ]
        assert clock.now() == EPOCH + timedelta(seconds=5)
        assert clock.pending == 1

    @pytest.mark.asyncio
    async def test_cancelled_timer_does_not_fire(self):
        clock = VirtualTimeSource()
        fired = []

        handle = clock.call_at(EPOCH + timedelta(seconds=1), lambda: fired.append(1))
        handle.cancel()

        await clock.advance_by(10)

        assert fired == []
        assert handle.cancelled
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_past_instant_fires_on_next_advance(self):
        """Test instants in the past fire immediately."""
        clock = VirtualTimeSource(start=EPOCH + timedelta(seconds=10))
        fired = []

        clock.call_at(EPOCH, lambda: fired.append(clock.now()))
        await clock.advance_by(0)

        assert fired == [EPOCH + timedelta(seconds=10)]

    @pytest.mark.asyncio
    async def test_awaitable_callbacks_are_awaited(self):
        clock = VirtualTimeSource()
        fired = []

        async def work():
            await asyncio.sleep(0)
            fired.append(clock.now())

        clock.call_at(EPOCH + timedelta(seconds=2), work)
        await clock.advance_by(3)

        assert fired == [EPOCH + timedelta(seconds=2)]

    @pytest.mark.asyncio
    async def test_timers_armed_while_advancing(self):
        """Test timers armed by a firing inside the advance window also fire."""
        clock = VirtualTimeSource()
        fired = []

        def first():
            fired.append(clock.now())
            clock.call_at(clock.now() + timedelta(seconds=2), second)

        def second():
            fired.append(clock.now())

        clock.call_at(EPOCH + timedelta(seconds=1), first)
        await clock.advance_by(5)

        assert fired == [EPOCH + timedelta(seconds=1), EPOCH + timedelta(seconds=3)]

    @pytest.mark.asyncio
    async def test_dispatch_latency(self):
        """Test firings observe the configured latency."""
        clock = VirtualTimeSource(dispatch_latency=timedelta(milliseconds=300))
        fired = []

        clock.call_at(EPOCH + timedelta(seconds=1), lambda: fired.append(clock.now()))
        await clock.advance_by(2)

        assert fired == [EPOCH + timedelta(seconds=1, milliseconds=300)]
        assert clock.now() == EPOCH + timedelta(seconds=2)

    @pytest.mark.asyncio
    async def test_elapse_does_not_dispatch(self):
        clock = VirtualTimeSource()
        fired = []

        clock.call_at(EPOCH + timedelta(seconds=1), lambda: fired.append(clock.now()))
        clock.elapse(5)

        assert fired == []
        assert clock.now() == EPOCH + timedelta(seconds=5)

        await clock.advance_by(0)
        assert fired == [EPOCH + timedelta(seconds=5)]

    @pytest.mark.asyncio
    async def test_cannot_move_backwards(self):
        clock = VirtualTimeSource(start=EPOCH + timedelta(seconds=5))

        with pytest.raises(InvalidArgumentError):
            await clock.advance_to(EPOCH)
        with pytest.raises(InvalidArgumentError):
            await clock.advance_by(-1)
        with pytest.raises(InvalidArgumentError):
            clock.elapse(timedelta(seconds=-1))


class TestAsyncioTimeSource:
    """Tests for AsyncioTimeSource against the real event loop."""

    def test_now_is_utc(self):
        assert AsyncioTimeSource().now().tzinfo == timezone.utc

    @pytest.mark.asyncio
    async def test_timer_fires(self):
        source = AsyncioTimeSource()
        fired = asyncio.Event()

        source.call_at(source.now() + timedelta(milliseconds=20), fired.set)

        await asyncio.wait_for(fired.wait(), timeout=2)

    @pytest.mark.asyncio
    async def test_cancelled_timer_does_not_fire(self):
        source = AsyncioTimeSource()
        fired = []

        handle = source.call_at(source.now() + timedelta(milliseconds=20), lambda: fired.append(1))
        handle.cancel()
        await asyncio.sleep(0.1)

        assert fired == []

    @pytest.mark.asyncio
    async def test_drain_waits_for_coroutines(self):
        """Test drain waits for coroutine work spawned by timers."""
        source = AsyncioTimeSource()
        done = []

        async def work():
            await asyncio.sleep(0.05)
            done.append(1)

        source.call_at(source.now(), work)
        await asyncio.sleep(0.01)
        assert source.in_flight == 1

        await source.drain()

        assert done == [1]
        assert source.in_flight == 0
