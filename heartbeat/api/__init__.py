"""API Router Module"""

from fastapi import APIRouter

from .health import router as health_router
from .items import router as items_router
from .scheduler import router as scheduler_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(scheduler_router, prefix="/scheduler", tags=["Scheduler"])
api_router.include_router(items_router, prefix="/items", tags=["Items"])

__all__ = ["api_router"]
