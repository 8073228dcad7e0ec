"""
Health Check Endpoints

System health monitoring endpoint.
"""

import time
from datetime import datetime
from typing import Dict, Any

import psutil
from fastapi import APIRouter, Request

from .. import __version__

router = APIRouter()

# Track startup time
_start_time = time.time()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns system status including:
    - Scheduler state
    - Memory usage
    - CPU usage
    - Uptime
    """
    health = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "uptime_seconds": round(time.time() - _start_time, 2),
        "checks": {}
    }

    # Scheduler check
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        health["checks"]["scheduler"] = {"status": "error", "message": "not initialized"}
        health["status"] = "unhealthy"
    else:
        health["checks"]["scheduler"] = {
            "status": "ok" if scheduler.running else "stopped",
            "items": len(scheduler.items),
        }
        if not scheduler.running:
            health["status"] = "degraded"

    # Memory check
    try:
        memory = psutil.virtual_memory()
        health["checks"]["memory"] = {
            "status": "ok" if memory.percent < 80 else "warning",
            "percent": round(memory.percent, 1),
            "available_mb": round(memory.available / (1024 * 1024), 1)
        }
    except Exception as e:
        health["checks"]["memory"] = {"status": "error", "message": str(e)}

    # CPU check
    try:
        cpu_percent = psutil.cpu_percent(interval=0.1)
        health["checks"]["cpu"] = {
            "status": "ok" if cpu_percent < 80 else "warning",
            "percent": round(cpu_percent, 1)
        }
    except Exception as e:
        health["checks"]["cpu"] = {"status": "error", "message": str(e)}

    return health
