"""
Item Timeline

Alignment, catch-up and drift-corrected periodic re-firing for a single
work item.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..core.clock import TimerHandle, TimeSource, sample_begin
from ..core.models import CallbackErrorPolicy, TimelineState, WorkItem, WorkItemStatus

logger = logging.getLogger(__name__)


async def invoke_callback(callback: Callable[[], Any], offload_sync: bool = True) -> None:
    """
    Run a work item callback to completion.

    Coroutine functions are awaited on the loop. Plain callables run in a
    worker thread (or inline when offload_sync is False); if they return an
    awaitable it is awaited as well.
    """
    if inspect.iscoroutinefunction(callback):
        await callback()
        return

    if offload_sync:
        result = await asyncio.to_thread(callback)
    else:
        result = callback()

    if inspect.isawaitable(result):
        await result


class ItemTimeline:
    """
    Firing state machine for one work item.

    PENDING -> AWAITING_FIRST_FIRE -> PERIODIC, and any state -> STOPPED.

    `next_fire` is the anchor. Every firing moves it forward by exactly one
    period before the callback runs, so fire instants stay on an arithmetic
    progression regardless of dispatch latency or callback duration.
    Invocations of the same item never overlap: a firing that comes due
    while the previous run is still active is skipped and counted as missed,
    and the anchor still advances.
    """

    def __init__(
        self,
        index: int,
        item: WorkItem,
        period: timedelta,
        time_source: TimeSource,
        error_policy: CallbackErrorPolicy = CallbackErrorPolicy.LOG,
        offload_sync: bool = True,
    ):
        self.index = index
        self.item = item
        self.period = period
        self._time_source = time_source
        self._error_policy = error_policy
        self._offload_sync = offload_sync
        self._handle: Optional[TimerHandle] = None
        self._lock = asyncio.Lock()

        self.state = TimelineState.PENDING
        self.next_fire: Optional[datetime] = None
        self.last_fired_at: Optional[datetime] = None
        self.invocations = 0
        self.missed = 0
        self.errors = 0
        self.last_error: Optional[str] = None

    @property
    def stopped(self) -> bool:
        return self.state is TimelineState.STOPPED

    async def start(self) -> None:
        """Align to the current sample, run the catch-up if due, arm the first fire"""
        if self.stopped:
            return

        now = self._time_source.now()
        target = sample_begin(now, self.period) + self.item.offset

        if target < now:
            # Offset already elapsed in this sample
            if self.item.inclusive:
                logger.debug(f"Running catch-up for {self.item.name}")
                await self._invoke(now)
            target += self.period

        if self.stopped:
            # Stopped while the catch-up was running
            return

        self.state = TimelineState.AWAITING_FIRST_FIRE
        self._arm(target)

    def cancel(self) -> None:
        """Stop firing; an invocation already running is left to finish"""
        self.state = TimelineState.STOPPED
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self, when: datetime) -> None:
        self.next_fire = when
        self._handle = self._time_source.call_at(when, self._on_fire)
        logger.debug(f"Armed {self.item.name} for {when.isoformat()}")

    async def _on_fire(self) -> None:
        if self.stopped:
            return

        fired_at = self.next_fire
        self.state = TimelineState.PERIODIC
        self._arm(fired_at + self.period)

        if self._lock.locked():
            # Previous run still going, drop this firing instead of queueing it
            self.missed += 1
            logger.debug(f"Skipped {self.item.name} at {fired_at.isoformat()}, previous run still active")
            return

        await self._invoke(fired_at)

    async def _invoke(self, fired_at: datetime) -> None:
        async with self._lock:
            if self.stopped:
                return

            self.invocations += 1
            self.last_fired_at = fired_at

            try:
                await invoke_callback(self.item.callback, self._offload_sync)
            except Exception as e:
                self.errors += 1
                self.last_error = f"{type(e).__name__}: {e}"

                if self._error_policy is CallbackErrorPolicy.RAISE:
                    raise

                logger.error(f"Work item {self.item.name} failed: {e}", exc_info=True)

                if self._error_policy is CallbackErrorPolicy.CANCEL:
                    logger.warning(f"Cancelling work item {self.item.name} after failure")
                    self.cancel()

    def status(self) -> WorkItemStatus:
        return WorkItemStatus(
            index=self.index,
            name=self.item.name,
            offset_seconds=self.item.offset.total_seconds(),
            inclusive=self.item.inclusive,
            state=self.state,
            next_fire=None if self.stopped else self.next_fire,
            last_fired_at=self.last_fired_at,
            invocations=self.invocations,
            missed=self.missed,
            errors=self.errors,
            last_error=self.last_error,
        )
