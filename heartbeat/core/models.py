"""
Data Models

Work item records owned by the scheduler, plus pydantic models for status
reporting through the API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class TimelineState(str, Enum):
    PENDING = "pending"
    AWAITING_FIRST_FIRE = "awaiting_first_fire"
    PERIODIC = "periodic"
    STOPPED = "stopped"


class CallbackErrorPolicy(str, Enum):
    LOG = "log"          # log and keep firing
    CANCEL = "cancel"    # log and cancel the failing item only
    RAISE = "raise"      # propagate into the firing unit


# =============================================================================
# Work Items
# =============================================================================

def _callback_name(callback: Callable[[], Any]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


@dataclass(frozen=True)
class WorkItem:
    """A registered task: run `callback` at `offset` into every sample"""
    offset: timedelta
    callback: Callable[[], Any] = field(compare=False)
    inclusive: bool = False
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", _callback_name(self.callback))


# =============================================================================
# Status Models
# =============================================================================

class WorkItemStatus(BaseModel):
    """Runtime view of one work item's timeline"""
    index: int = Field(..., ge=0, description="Registration order")
    name: str
    offset_seconds: float = Field(..., ge=0)
    inclusive: bool = False
    state: TimelineState = TimelineState.PENDING
    next_fire: Optional[datetime] = None
    last_fired_at: Optional[datetime] = None
    invocations: int = 0
    missed: int = Field(default=0, description="Firings skipped while a previous run was active")
    errors: int = 0
    last_error: Optional[str] = None


class SchedulerStatus(BaseModel):
    """Runtime view of the whole scheduler"""
    running: bool
    sampling_seconds: float = Field(..., gt=0)
    sample_time: datetime
    started_at: Optional[datetime] = None
    items: List[WorkItemStatus] = Field(default_factory=list)


class APIResponse(BaseModel):
    """Generic API response"""
    success: bool = True
    message: str = ""
