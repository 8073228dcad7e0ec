"""
Action Scheduler

Runs registered callbacks at fixed offsets within a repeating sampling
window, with catch-up for offsets missed at start-up and drift-corrected
periodic re-firing.
"""

import asyncio
import logging
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, List, Optional

from ..config import settings
from ..core.clock import AsyncioTimeSource, Duration, TimeSource, sample_begin, to_timedelta
from ..core.errors import InvalidArgumentError, SchedulerStateError
from ..core.models import CallbackErrorPolicy, SchedulerStatus, WorkItem, WorkItemStatus
from .timeline import ItemTimeline

logger = logging.getLogger(__name__)


class ActionScheduler:
    """
    Periodic task scheduler aligned to sample boundaries.

    Usage:
        scheduler = ActionScheduler(timedelta(seconds=10))
        scheduler.schedule(timedelta(seconds=1), poll_sensors)
        scheduler.schedule(timedelta(seconds=5), push_readings, inclusive=True)

        async with scheduler:
            await scheduler.start()
            ...

    Features:
    - Every item fires at sample_begin + offset, once per sampling period
    - Inclusive items whose offset already elapsed run immediately on start
    - Fire times are anchored to the original schedule (no drift)
    - Pluggable time source for deterministic testing
    """

    def __init__(
        self,
        sampling: Duration,
        time_source: Optional[TimeSource] = None,
        *,
        error_policy: Optional[CallbackErrorPolicy] = None,
        offload_sync_callbacks: Optional[bool] = None,
    ):
        sampling = to_timedelta(sampling)
        if sampling <= timedelta(0):
            raise InvalidArgumentError("Sampling period must be positive")

        self._sampling = sampling
        self._time_source: TimeSource = time_source or AsyncioTimeSource()
        self._error_policy = CallbackErrorPolicy(
            error_policy if error_policy is not None else settings.callback_error_policy
        )
        self._offload_sync = (
            offload_sync_callbacks
            if offload_sync_callbacks is not None
            else settings.offload_sync_callbacks
        )

        self._tasks: Deque[WorkItem] = deque()
        self._registry_lock = threading.Lock()

        self._timelines: List[ItemTimeline] = []
        self._startup_tasks: List[asyncio.Task] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._running = False
        self._started_at: Optional[datetime] = None

    @property
    def sampling(self) -> timedelta:
        return self._sampling

    @property
    def time_source(self) -> TimeSource:
        return self._time_source

    @property
    def running(self) -> bool:
        return self._running

    @property
    def items(self) -> List[WorkItem]:
        """Registered work items in registration order"""
        with self._registry_lock:
            return list(self._tasks)

    @property
    def sample_time(self) -> datetime:
        """Start of the current sampling window"""
        return sample_begin(self._time_source.now(), self._sampling)

    def schedule(
        self,
        offset: Duration,
        task: Callable[[], Any],
        inclusive: bool = False,
        name: Optional[str] = None,
    ) -> WorkItem:
        """
        Register a task to run at `offset` into every sample.

        Args:
            offset: Delay from the sample boundary, 0 <= offset <= sampling
            task: Zero-argument callable or coroutine function
            inclusive: Run immediately on start if the offset already
                elapsed in the current sample
            name: Label for logs and status, defaults to the callable's name

        Raises:
            InvalidArgumentError: offset outside the sample or task missing
            SchedulerStateError: the scheduler was already started
        """
        if task is None or not callable(task):
            raise InvalidArgumentError("Task must be a callable")

        offset = to_timedelta(offset)
        if offset > self._sampling:
            raise InvalidArgumentError("Task execution time must be within sampling")
        if offset < timedelta(0):
            raise InvalidArgumentError("Task execution time must not be negative")

        item = WorkItem(offset=offset, callback=task, inclusive=inclusive, name=name or "")

        with self._registry_lock:
            if self._started:
                raise SchedulerStateError("Cannot schedule tasks after the scheduler was started")
            self._tasks.append(item)

        logger.debug(
            f"Scheduled {item.name} at +{offset.total_seconds()}s"
            f"{' (inclusive)' if inclusive else ''}"
        )
        return item

    async def start(self) -> None:
        """
        Start every registered task.

        Returns once each item has been aligned, has run its catch-up (if
        any) and has its first timer armed.
        """
        with self._registry_lock:
            if self._started:
                logger.warning("Scheduler already started")
                return
            self._started = True
            items = list(self._tasks)

        logger.info(
            f"Starting scheduler with {len(items)} task(s), "
            f"sampling {self._sampling.total_seconds()}s"
        )

        self._loop = asyncio.get_running_loop()
        self._running = True
        self._started_at = self._time_source.now()
        self._timelines = [
            ItemTimeline(
                index,
                item,
                self._sampling,
                self._time_source,
                error_policy=self._error_policy,
                offload_sync=self._offload_sync,
            )
            for index, item in enumerate(items)
        ]

        self._startup_tasks = [
            asyncio.create_task(timeline.start()) for timeline in self._timelines
        ]
        results = await asyncio.gather(*self._startup_tasks, return_exceptions=True)
        self._startup_tasks = []

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.error(f"Scheduler start-up failed for {len(errors)} task(s)")
            self.stop()
            raise errors[0]

        if self._running:
            logger.info("Scheduler started")

    def stop(self) -> None:
        """
        Cancel every outstanding timer. Idempotent.

        Does not wait for callbacks that are already running; use aclose()
        for that. Safe to call from any thread. Off the loop thread the
        cancellation is handed to the loop and completes asynchronously:
        `running` reads False at once, but a timer already due may still
        fire before the loop gets to it.
        """
        if not self._running:
            return

        loop = self._loop
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if loop is not None and current is not loop and loop.is_running():
            loop.call_soon_threadsafe(self._cancel_all)
            self._running = False
            return

        self._cancel_all()

    def _cancel_all(self) -> None:
        logger.info("Stopping scheduler...")
        self._running = False

        for timeline in self._timelines:
            timeline.cancel()

        logger.info("Scheduler stopped")

    async def aclose(self) -> None:
        """Stop and wait for in-flight start-up and callback work to finish"""
        self.stop()

        if self._startup_tasks:
            await asyncio.gather(*self._startup_tasks, return_exceptions=True)

        await self._time_source.drain()

    def close(self) -> None:
        self.stop()

    def status(self) -> SchedulerStatus:
        if self._timelines:
            items = [timeline.status() for timeline in self._timelines]
        else:
            # Not started yet, report the registry
            items = [
                WorkItemStatus(
                    index=index,
                    name=item.name,
                    offset_seconds=item.offset.total_seconds(),
                    inclusive=item.inclusive,
                )
                for index, item in enumerate(self.items)
            ]

        return SchedulerStatus(
            running=self._running,
            sampling_seconds=self._sampling.total_seconds(),
            sample_time=self.sample_time,
            started_at=self._started_at,
            items=items,
        )

    async def __aenter__(self) -> "ActionScheduler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __enter__(self) -> "ActionScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
