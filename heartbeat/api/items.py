"""
Work Item Endpoints

Read-only view of registered work items and their timelines.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from .deps import SchedulerDep
from ..core.models import WorkItemStatus

router = APIRouter()


@router.get("", response_model=List[WorkItemStatus])
async def list_items(scheduler: SchedulerDep) -> List[WorkItemStatus]:
    """List all work items in registration order"""
    return scheduler.status().items


@router.get("/{index}", response_model=WorkItemStatus)
async def get_item(index: int, scheduler: SchedulerDep) -> WorkItemStatus:
    """Get a specific work item by registration index"""
    items = scheduler.status().items
    if index < 0 or index >= len(items):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Work item {index} not found"
        )
    return items[index]
