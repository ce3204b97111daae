"""FastAPI application entry point.

Configures the application with logging, metrics, exception handling,
health checks and the memory routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from llm_memory import __version__
from llm_memory.api.routes import close_memory_manager, get_memory_manager, router
from llm_memory.config import get_settings
from llm_memory.exceptions import ErrorCode, LLMMemoryError
from llm_memory.logging_config import get_logger, setup_logging
from llm_memory.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)

_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DOCUMENT_NOT_FOUND: 404,
    ErrorCode.COLLECTION_NOT_FOUND: 404,
    ErrorCode.RECORD_NOT_FOUND: 404,
    ErrorCode.COLLECTION_EXISTS: 409,
    ErrorCode.LLM_RATE_LIMIT: 429,
    ErrorCode.LLM_TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting llm-memory API",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    yield

    # Shutdown
    await close_memory_manager()
    logger.info("Shutting down llm-memory API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="llm-memory",
        description="Long-term memory and prompt management for LLM applications",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(LLMMemoryError, memory_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Observability"])
    app.include_router(router)

    return app


async def memory_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle LLMMemoryError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, LLMMemoryError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=get_status_code(exc.code),
        content=exc.to_dict(),
    )


def get_status_code(error_code: ErrorCode) -> int:
    """Map an error code to an HTTP status code."""
    return _STATUS_CODES.get(error_code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check() -> dict[str, Any]:
    """Kubernetes readiness check.

    Checks that the memory manager can be built from settings and that the
    vector store answers.

    Returns:
        Readiness status with component checks.
    """
    checks: dict[str, str] = {}

    try:
        memory = get_memory_manager()
        checks["config"] = "ok"
    except Exception as e:
        logger.warning(f"Memory manager could not be built: {e}")
        checks["config"] = "error"
        checks["vector_store"] = "error"
    else:
        try:
            await memory.vector_store.index_exists()
            checks["vector_store"] = "ok"
        except LLMMemoryError as e:
            logger.warning(f"Vector store not ready: {e.message}")
            checks["vector_store"] = "error"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness check.

    Simple check that the service is running.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
