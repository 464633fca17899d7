"""FastAPI application entry point.

Configures the application with logging, service wiring, exception
handling, health checks and metrics.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pdfchat import __version__
from pdfchat.api.dependencies import ServiceContainer, get_vector_store
from pdfchat.api.routes import router
from pdfchat.config import get_settings
from pdfchat.exceptions import ErrorCode, PDFChatError
from pdfchat.logging_config import get_logger, setup_logging
from pdfchat.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from pdfchat.vectorstore.service import VectorStore

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred while processing the request"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Validates settings, builds the clients once and closes them on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    settings.validate_required()

    services = ServiceContainer.from_settings(settings)
    await services.startup()
    app.state.services = services

    logger.info(
        "Starting PDF Chat",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
            "collection": settings.qdrant.collection_name,
        },
    )

    yield

    # Shutdown
    logger.info("Shutting down PDF Chat")
    await services.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="PDF Chat",
        description="Ask questions about uploaded PDF documents",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(PDFChatError, pdfchat_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Register routes
    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Observability"])

    return app


async def pdfchat_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Convert a PDFChatError into ``{"error", "code", "success": false}``."""
    if not isinstance(exc, PDFChatError):
        return await unhandled_exception_handler(request, exc)

    status_code = get_status_code(exc.code)
    log = logger.warning if status_code < 500 else logger.error
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def request_validation_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Report malformed request bodies in the common error shape."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    logger.warning(
        "Invalid request body",
        extra={"path": request.url.path, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "code": ErrorCode.VALIDATION_ERROR.value,
            "success": False,
        },
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Log the traceback and return a generic message."""
    logger.exception(
        f"Unhandled error: {exc}",
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": GENERIC_ERROR_MESSAGE,
            "code": ErrorCode.INTERNAL_ERROR.value,
            "success": False,
        },
    )


_BAD_REQUEST_CODES = frozenset(
    {
        ErrorCode.VALIDATION_ERROR,
        ErrorCode.UNSUPPORTED_FORMAT,
        ErrorCode.DOCUMENT_PARSE_ERROR,
        ErrorCode.EMPTY_DOCUMENT,
    }
)

_UNAVAILABLE_CODES = frozenset(
    {
        ErrorCode.EMBEDDING_RATE_LIMIT,
        ErrorCode.LLM_RATE_LIMIT,
    }
)


def get_status_code(code: ErrorCode) -> int:
    """Map an error code to an HTTP status code."""
    if code in _BAD_REQUEST_CODES:
        return 400

    # Upstream throttled us after backoff
    if code in _UNAVAILABLE_CODES:
        return 503

    if code == ErrorCode.LLM_TIMEOUT:
        return 504

    return 500


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


async def readiness_check(
    vector_store: VectorStore = Depends(get_vector_store),
) -> JSONResponse:
    """Readiness probe: the vector store must answer a count."""
    checks: dict[str, str] = {"config": "ok"}

    try:
        stats = await vector_store.stats()
        checks["vector_store"] = "ok"
        records: int | None = stats.total_record_count
    except PDFChatError as e:
        logger.warning(f"Readiness check failed: {e.message}")
        checks["vector_store"] = "unavailable"
        records = None

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "records": records,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus exposition endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
