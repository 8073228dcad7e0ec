"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from heartbeat import ActionScheduler, CallbackErrorPolicy, VirtualTimeSource


class Recorder:
    """Callable that records the clock reading of every invocation."""

    def __init__(self, clock: Optional[VirtualTimeSource] = None):
        self.clock = clock
        self.times: List[datetime] = []

    def __call__(self) -> None:
        self.times.append(self.clock.now() if self.clock else datetime.now())

    @property
    def count(self) -> int:
        return len(self.times)


@pytest.fixture
def clock() -> VirtualTimeSource:
    """Virtual clock starting at tick zero."""
    return VirtualTimeSource()


@pytest.fixture
def make_scheduler(clock):
    """Factory for schedulers driven by the virtual clock."""

    def factory(
        sampling: timedelta = timedelta(seconds=5),
        error_policy: CallbackErrorPolicy = CallbackErrorPolicy.LOG,
        offload_sync_callbacks: bool = False,
    ) -> ActionScheduler:
        return ActionScheduler(
            sampling,
            clock,
            error_policy=error_policy,
            offload_sync_callbacks=offload_sync_callbacks,
        )

    return factory


@pytest.fixture
def recorder(clock) -> Recorder:
    return Recorder(clock)


@pytest.fixture
def make_recorder(clock):
    """Factory for additional recorders sharing the virtual clock."""
    return lambda: Recorder(clock)
