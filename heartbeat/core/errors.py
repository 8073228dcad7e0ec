"""
Scheduler Errors

Exception hierarchy raised by the scheduling engine.
"""


class HeartbeatError(Exception):
    """Base class for all scheduler errors"""


class InvalidArgumentError(HeartbeatError, ValueError):
    """Raised for invalid registration arguments or sampling periods"""


class SchedulerStateError(HeartbeatError, RuntimeError):
    """Raised when an operation is not allowed in the scheduler's current state"""
