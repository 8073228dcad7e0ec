"""Heartbeat - sample-aligned periodic task scheduler"""

__version__ = "1.0.0"

from .core import (
    EPOCH,
    AsyncioTimeSource,
    CallbackErrorPolicy,
    HeartbeatError,
    InvalidArgumentError,
    SchedulerStateError,
    TimerHandle,
    TimeSource,
    VirtualTimeSource,
    WorkItem,
    sample_begin,
)
from .scheduler import ActionScheduler

__all__ = [
    "__version__",
    "ActionScheduler",
    "EPOCH",
    "AsyncioTimeSource",
    "CallbackErrorPolicy",
    "HeartbeatError",
    "InvalidArgumentError",
    "SchedulerStateError",
    "TimerHandle",
    "TimeSource",
    "VirtualTimeSource",
    "WorkItem",
    "sample_begin",
]
