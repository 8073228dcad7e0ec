"""
Scheduler Endpoints

Scheduler status and lifecycle control.
"""

from fastapi import APIRouter

from .deps import APIKeyDep, SchedulerDep
from ..core.models import APIResponse, SchedulerStatus

router = APIRouter()


@router.get("", response_model=SchedulerStatus)
async def get_status(scheduler: SchedulerDep) -> SchedulerStatus:
    """Get scheduler status including every work item"""
    return scheduler.status()


@router.post("/stop", response_model=APIResponse)
async def stop_scheduler(scheduler: SchedulerDep, api_key: APIKeyDep) -> APIResponse:
    """Cancel all outstanding timers"""
    if not scheduler.running:
        return APIResponse(message="Scheduler is not running")

    scheduler.stop()
    return APIResponse(message="Scheduler stopped")
