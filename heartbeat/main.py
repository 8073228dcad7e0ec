"""
Heartbeat - Main Application Entry Point

FastAPI application hosting a demo scheduler: one task at the first second
and one at the fifth second of every sample.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .api import api_router
from .scheduler import ActionScheduler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to stdout and, when configured, to a rotating log file"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )

    if settings.log_file:
        try:
            settings.ensure_directories()
            file_handler = RotatingFileHandler(
                settings.log_full_path,
                maxBytes=settings.log_max_size_mb * 1024 * 1024,
                backupCount=settings.log_backup_count,
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logging.getLogger().addHandler(file_handler)
        except OSError as e:
            logging.warning(f"Could not set up file logging: {e}")


def announce(message: str) -> None:
    logger.info(f"{message}. Time: {datetime.now()}")


def build_scheduler() -> ActionScheduler:
    """Create the demo scheduler from settings"""
    scheduler = ActionScheduler(timedelta(seconds=settings.sampling_period))

    scheduler.schedule(
        timedelta(seconds=1),
        lambda: announce("First second"),
        name="first-second",
    )
    scheduler.schedule(
        timedelta(seconds=5),
        lambda: announce("Fifth second"),
        name="fifth-second",
    )

    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    logger.info("=" * 60)
    logger.info("Heartbeat Starting...")
    logger.info("=" * 60)

    scheduler = build_scheduler()
    app.state.scheduler = scheduler

    async with scheduler:
        await scheduler.start()

        logger.info(f"API server ready on {settings.api_host}:{settings.api_port}")
        logger.info("=" * 60)

        # Notify systemd we're ready (if running under systemd)
        try:
            import sdnotify
            n = sdnotify.SystemdNotifier()
            n.notify("READY=1")
            logger.info("Notified systemd: READY")
        except ImportError:
            pass
        except Exception as e:
            logger.debug(f"Could not notify systemd: {e}")

        yield

        logger.info("Shutting down...")

    logger.info("Goodbye!")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Heartbeat",
        description="Sample-aligned periodic task scheduler",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.docs_enabled else None,
        redoc_url="/api/redoc" if settings.docs_enabled else None,
        openapi_url="/api/openapi.json" if settings.docs_enabled else None,
    )

    # Include API routes
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Root endpoint - basic info"""
        return {
            "name": "Heartbeat",
            "version": __version__,
            "status": "running",
            "api_docs": "/api/docs" if settings.docs_enabled else None,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": str(exc)}
        )

    return app


app = create_app()


def run():
    """Run the application with uvicorn"""
    import uvicorn

    configure_logging()
    logger.info(f"Starting server on {settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "heartbeat.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
