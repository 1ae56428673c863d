"""taskpulse - collaborative task tracking with realtime notifications."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core import db_client
from src.core.config import Constants
from src.core.errors import (
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    TaskValidationError,
    classify_error_with_response,
)
from src.core.logging import configure_logfire, instrument_fastapi, log_with_context
from src.interface.notification_router import router as notification_router
from src.interface.realtime import router as realtime_router
from src.interface.task_router import router as task_router
from src.services.presence_registry import PresenceRegistry


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await db_client.init_db()
    logger.info("Database initialized")

    app.state.presence_registry = PresenceRegistry()
    yield
    # Shutdown
    app.state.presence_registry.clear()
    await db_client.close_connection()
    logger.info("Database connection closed")


app = FastAPI(
    title="taskpulse",
    description="Collaborative task tracking with realtime notifications",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(task_router)
app.include_router(notification_router)
app.include_router(realtime_router)


async def handle_service_error(request: Request, exc: Exception) -> JSONResponse:
    """Translate service-layer errors into structured JSON responses."""
    response = classify_error_with_response(exc)
    level = "error" if response.status_code >= Constants.HTTP_SERVER_ERROR else "warning"
    log_with_context(
        logger,
        level,
        "request_failed",
        path=request.url.path,
        code=response.code,
        error=str(exc),
    )
    return JSONResponse(
        content={"code": response.code, "message": response.message, "suggestion": response.suggestion},
        status_code=response.status_code,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 like other validation failures."""
    logger.warning("request_invalid", extra={"path": request.url.path, "errors": str(exc.errors())})
    return JSONResponse(
        content={
            "code": ErrorCode.ERR_VALIDATION,
            "message": "Invalid request body",
            "suggestion": "Send a JSON object with the expected fields.",
        },
        status_code=Constants.HTTP_BAD_REQUEST,
    )


for error_type in (TaskValidationError, NotFoundError, ForbiddenError, PersistenceError):
    app.add_exception_handler(error_type, handle_service_error)
app.add_exception_handler(RequestValidationError, handle_request_validation_error)  # type: ignore[arg-type]


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={"status": "OK", "timestamp": datetime.now(UTC).isoformat()},
        status_code=Constants.HTTP_OK,
    )


@app.get("/api/health/presence")
async def presence_health_check(request: Request) -> JSONResponse:
    """Report how many users currently hold a live connection."""
    presence: PresenceRegistry = request.app.state.presence_registry
    return JSONResponse(
        content={"status": "OK", "online_users": len(presence)},
        status_code=Constants.HTTP_OK,
    )
