"""taskquest - Gamified personal task tracker API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.config import constants, settings
from src.core.db_client import close_connection, init_db
from src.core.errors import AppError, ErrorCode, StoreError, classify_error
from src.core.events import event_bus
from src.core.logging import SERVICE_VERSION, configure_logfire, instrument_fastapi
from src.interface.responses import error_response
from src.interface.stats_router import router as stats_router
from src.interface.task_router import router as task_router
from src.services.notification_service import register_subscribers


logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    unsubscribers = register_subscribers(event_bus)
    yield
    # Shutdown
    for unsubscribe in unsubscribers:
        unsubscribe()
    await close_connection()


app = FastAPI(
    title="taskquest",
    description="Gamified personal task tracker",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(task_router)
app.include_router(stats_router)


def validation_message(exc: RequestValidationError) -> str:
    """Return the first validation failure as a client-facing message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    message = str(errors[0].get("msg", "Invalid request"))
    return message.removeprefix(_VALUE_ERROR_PREFIX)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map application errors onto the response envelope."""
    response = classify_error(exc)
    if isinstance(exc, StoreError):
        logger.error(
            "store_error",
            extra={"path": request.url.path, "method": request.method, "error": str(exc)},
            exc_info=exc,
        )
    else:
        logger.info(
            "request_rejected",
            extra={"path": request.url.path, "code": response.code, "error": response.message},
        )
    return error_response(response.message, status_code=response.status_code, code=response.code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report invalid request bodies and query parameters as 400."""
    message = validation_message(exc)
    logger.info("request_invalid", extra={"path": request.url.path, "error": message})
    return error_response(message, status_code=constants.HTTP_BAD_REQUEST, code=ErrorCode.ERR_VALIDATION)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown routes, wrong methods) in the envelope."""
    if exc.status_code == constants.HTTP_NOT_FOUND:
        return error_response("Route not found", status_code=exc.status_code, code=ErrorCode.ERR_ROUTE_NOT_FOUND)
    return error_response(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure and hide its details from the client."""
    logger.exception("unhandled_error", extra={"path": request.url.path, "method": request.method})
    response = classify_error(exc)
    return error_response(response.message, status_code=response.status_code, code=response.code)


@app.get("/")
async def root() -> JSONResponse:
    """Describe the API and its entry points."""
    return JSONResponse(
        content={
            "success": True,
            "message": "Welcome to the taskquest API",
            "endpoints": {"health": "/health", "tasks": "/tasks", "stats": "/stats"},
        },
        status_code=constants.HTTP_OK,
    )


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"success": True, "status": "healthy"}, status_code=constants.HTTP_OK)


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
        server_header=False,
    )


if __name__ == "__main__":
    run()
