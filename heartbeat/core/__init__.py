"""Core components for the heartbeat scheduler"""

from .clock import (
    EPOCH,
    AsyncioTimeSource,
    TimerHandle,
    TimeSource,
    VirtualTimeSource,
    sample_begin,
    to_timedelta,
)
from .errors import HeartbeatError, InvalidArgumentError, SchedulerStateError
from .models import (
    APIResponse,
    CallbackErrorPolicy,
    SchedulerStatus,
    TimelineState,
    WorkItem,
    WorkItemStatus,
)

__all__ = [
    "EPOCH",
    "AsyncioTimeSource",
    "TimerHandle",
    "TimeSource",
    "VirtualTimeSource",
    "sample_begin",
    "to_timedelta",
    "HeartbeatError",
    "InvalidArgumentError",
    "SchedulerStateError",
    "APIResponse",
    "CallbackErrorPolicy",
    "SchedulerStatus",
    "TimelineState",
    "WorkItem",
    "WorkItemStatus",
]
