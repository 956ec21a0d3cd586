"""focusboard - Personal task tracker with area-based focus and a session timer."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import constants
from src.core.db_client import close_connection, init_db
from src.core.errors import FocusboardError
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.redis_client import redis_client
from src.core.scheduler import start_scheduler, stop_scheduler
from src.interface.api_router import focusboard_error_handler, router as api_router
from src.interface.notifier import get_default_notifier
from src.interface.task_backend import SQLiteTaskBackend
from src.services.session_service import session_registry


logger = logging.getLogger(__name__)


async def check_redis_connectivity() -> None:
    """Verify Redis connectivity (optional service).

    Only checks if Redis is configured. Logs warning if unavailable but doesn't fail;
    the ledger then stays in memory for the life of the process.
    """
    if not redis_client.is_available:
        logger.info("startup_validation", extra={"service": "redis", "status": "disabled"})
        return

    try:
        result = await redis_client.ping()
        if result:
            logger.info("startup_validation", extra={"service": "redis", "status": "ok"})
        else:
            logger.warning("startup_validation", extra={"service": "redis", "status": "unavailable"})
    except Exception as e:
        logger.warning("startup_validation", extra={"service": "redis", "status": "unavailable", "error": str(e)})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    await check_redis_connectivity()

    session_registry.configure(backend=SQLiteTaskBackend(), notifier=get_default_notifier(), redis=redis_client)
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()
    await session_registry.close_all()
    await redis_client.close()
    await close_connection()


app = FastAPI(
    title="focusboard",
    description="Personal task tracker with area-based prioritization and a focus session timer",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers and error handlers
app.include_router(api_router)
app.add_exception_handler(FocusboardError, focusboard_error_handler)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)
