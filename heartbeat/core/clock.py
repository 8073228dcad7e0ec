"""
Time Sources

Sample clock arithmetic and the pluggable clock/timer abstraction used by the
scheduler. AsyncioTimeSource arms real timers on the running event loop,
VirtualTimeSource only moves when told to and is used for deterministic tests.
"""

import asyncio
import heapq
import inspect
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Protocol, Set, Tuple, Union

from .errors import InvalidArgumentError

# Tick zero of the absolute time line; sample boundaries are multiples of the
# sampling period counted from here, independent of calendar or timezone.
EPOCH = datetime(1, 1, 1, tzinfo=timezone.utc)

Duration = Union[timedelta, int, float]
TimerCallback = Callable[[], Any]


def to_timedelta(value: Duration) -> timedelta:
    """Convert a duration given as timedelta or seconds to a timedelta"""
    if isinstance(value, timedelta):
        return value

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"Expected a duration, got {value!r}")

    return timedelta(seconds=value)


def as_utc(moment: datetime) -> datetime:
    """Normalize a timestamp to aware UTC; naive values are taken as UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def sample_begin(now: datetime, period: timedelta) -> datetime:
    """
    Get the start of the sampling window containing `now`.

    This is the largest multiple of `period` (counted from EPOCH) at or
    before `now`. timedelta arithmetic is exact, so repeated calls never
    accumulate rounding error.
    """
    if period <= timedelta(0):
        raise InvalidArgumentError("Sampling period must be positive")

    now = as_utc(now)
    return now - (now - EPOCH) % period


class TimerHandle:
    """Cancellation handle for a timer armed through a TimeSource"""

    def __init__(self, when: datetime):
        self.when = when
        self._cancelled = False
        self._cancel_hook: Optional[Callable[[], Any]] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, cancel_hook: Callable[[], Any]) -> None:
        """Attach the underlying timer's cancel function"""
        self._cancel_hook = cancel_hook

    def cancel(self) -> None:
        if self._cancelled:
            return

        self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()
            self._cancel_hook = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "armed"
        return f"<TimerHandle {self.when.isoformat()} {state}>"


class TimeSource(Protocol):
    """Clock plus one-shot timer primitive"""

    def now(self) -> datetime:
        ...

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        """
        Invoke `callback` at absolute time `when`.

        Instants in the past fire as soon as possible. If the callback
        returns an awaitable, the time source runs it to completion.
        """
        ...

    async def drain(self) -> None:
        """Wait for callback work already dispatched to finish"""
        ...


class AsyncioTimeSource:
    """
    Wall-clock time source backed by the running asyncio event loop.

    Timers are armed with loop.call_later; awaitables returned by timer
    callbacks run as tasks on the same loop.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        loop = asyncio.get_running_loop()
        when = as_utc(when)
        delay = max(0.0, (when - self.now()).total_seconds())

        handle = TimerHandle(when)
        timer = loop.call_later(delay, self._dispatch, handle, callback)
        handle.bind(timer.cancel)
        return handle

    def _dispatch(self, handle: TimerHandle, callback: TimerCallback) -> None:
        if handle.cancelled:
            return

        result = callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        exc = task.exception()
        if exc is not None:
            task.get_loop().call_exception_handler({
                "message": "Unhandled error in timer callback",
                "exception": exc,
                "task": task,
            })

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class VirtualTimeSource:
    """
    Deterministic time source for tests.

    Time only moves through advance_by/advance_to (which dispatch due timers
    in due-time order, awaiting each one) or elapse (which does not).
    `dispatch_latency` delays the clock reading seen by every firing, to
    simulate a late timer.
    """

    def __init__(self, start: datetime = EPOCH, dispatch_latency: Duration = timedelta(0)):
        self._now = as_utc(start)
        self._latency = to_timedelta(dispatch_latency)
        self._queue: List[Tuple[datetime, int, TimerHandle, TimerCallback]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self._now

    @property
    def pending(self) -> int:
        """Number of armed, uncancelled timers"""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        when = as_utc(when)
        handle = TimerHandle(when)
        due = max(when, self._now)
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))
        return handle

    def elapse(self, delta: Duration) -> None:
        """Move the clock forward without dispatching timers"""
        delta = to_timedelta(delta)
        if delta < timedelta(0):
            raise InvalidArgumentError("Cannot move virtual time backwards")
        self._now += delta

    async def advance_by(self, delta: Duration) -> None:
        delta = to_timedelta(delta)
        if delta < timedelta(0):
            raise InvalidArgumentError("Cannot move virtual time backwards")
        await self.advance_to(self._now + delta)

    async def advance_to(self, when: datetime) -> None:
        when = as_utc(when)
        if when < self._now:
            raise InvalidArgumentError("Cannot move virtual time backwards")

        while self._queue and self._queue[0][0] <= when:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue

            self._now = max(self._now, due + self._latency)
            result = callback()
            if inspect.isawaitable(result):
                await result

        self._now = max(self._now, when)

    async def drain(self) -> None:
        # Firings are awaited inline by advance_to
        return None
