"""
API Dependencies

Common dependencies for API endpoints including authentication and scheduler access.
"""

from typing import Annotated
from fastapi import Depends, HTTPException, Header, Request, status

from ..config import settings
from ..scheduler import ActionScheduler


async def get_scheduler(request: Request) -> ActionScheduler:
    """Dependency to get the scheduler attached to the application"""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduler not initialized"
        )
    return scheduler


SchedulerDep = Annotated[ActionScheduler, Depends(get_scheduler)]


async def verify_api_key(x_api_key: str = Header(None)) -> str:
    """Verify API key for protected endpoints (POST /api/scheduler/stop)"""
    if not settings.api_key:
        # No API key configured, allow all requests
        return ""

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Provide X-API-Key header."
        )

    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return x_api_key


APIKeyDep = Annotated[str, Depends(verify_api_key)]
