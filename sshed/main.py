import asyncio
import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from sshed.core.config import get_settings
from sshed.core.logging import setup_logging
from sshed.core.database import create_db_and_tables
from sshed.core.runtime import get_runtime
from sshed.dependencies import sync_service
from sshed.services.scheduler import SchedulerService
from sshed.services.watcher import ConfigWatcher, SyncTrigger

# Import Routers
from sshed.routers import core, hosts as hosts_router, sync as sync_router

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manages sshed application lifecycle events.

    On Startup:
    - Creates database tables if missing.
    - Runs an initial sync pass over the configured ssh config.
    - Starts the file watcher and the periodic sync job.

    On Shutdown:
    - Stops the watcher and the scheduler, waits for a running pass.
    """
    logger.info("sshed starting up...")
    create_db_and_tables()

    if settings.SYNC_ON_STARTUP:
        await asyncio.to_thread(sync_service.run, "startup")

    trigger = SyncTrigger(sync_service, settings.WATCH_DEBOUNCE_SECONDS)
    trigger.bind(asyncio.get_running_loop())
    watcher = None
    if settings.WATCH_ENABLED:
        watcher = ConfigWatcher(get_runtime(), trigger)
        watcher.start()

    SchedulerService.start(sync_service)
    logger.info("sshed started successfully.")

    yield

    logger.info("sshed shutting down...")
    if watcher is not None:
        watcher.stop()
    SchedulerService.shutdown()
    await trigger.drain()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)


# Global Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(content={"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catches unhandled exceptions (store failures included) and returns a clean 500."""
    logger.exception("Unhandled exception")
    return JSONResponse(content={"detail": "Internal Server Error"}, status_code=500)


# Include Routers
app.include_router(core.router)
app.include_router(hosts_router.router)
app.include_router(sync_router.router)
