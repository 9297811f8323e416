"""FastAPI application entry point.

- Every response carries an X-Request-ID header
- Domain errors map to structured bodies {"error", "code", "request_id"}
  in one place (DOMAIN_ERRORS); endpoints just let them propagate
- 4xx are logged at WARNING, 5xx at ERROR
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from media_scoring.api.v1 import router as api_v1_router
from media_scoring.core.config import get_settings
from media_scoring.core.logging import get_logger, setup_logging
from media_scoring.integrations.content_proxy import (
    close_content_proxy,
    init_content_proxy,
)
from media_scoring.integrations.gemini import ScoringError, close_gemini, init_gemini
from media_scoring.services.aggregation import UnknownSortKeyError
from media_scoring.services.batch_scoring import (
    BatchInProgressError,
    BatchNotFoundError,
)
from media_scoring.utils.text_extraction import (
    InsufficientContentError,
    TextExtractionError,
    UnsupportedFileTypeError,
)

setup_logging()
logger = get_logger(__name__)

# Exception type -> (status, code). Subclasses resolve to their own entry.
DOMAIN_ERRORS: dict[type[Exception], tuple[int, str]] = {
    BatchNotFoundError: (status.HTTP_404_NOT_FOUND, "BATCH_NOT_FOUND"),
    BatchInProgressError: (status.HTTP_409_CONFLICT, "BATCH_IN_PROGRESS"),
    UnknownSortKeyError: (status.HTTP_400_BAD_REQUEST, "INVALID_SORT_KEY"),
    InsufficientContentError: (status.HTTP_400_BAD_REQUEST, "INSUFFICIENT_CONTENT"),
    UnsupportedFileTypeError: (status.HTTP_400_BAD_REQUEST, "UNSUPPORTED_FILE_TYPE"),
    TextExtractionError: (status.HTTP_400_BAD_REQUEST, "EXTRACTION_FAILED"),
    ScoringError: (status.HTTP_502_BAD_GATEWAY, "SCORING_FAILED"),
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(
    request: Request, status_code: int, code: str, message: str
) -> JSONResponse:
    """Build and log a structured error response."""
    request_id = _request_id(request)
    log_extra = {
        "request_id": request_id,
        "path": request.url.path,
        "code": code,
        "error": message[:500],
    }
    if status_code >= 500:
        logger.error("Request rejected", extra=log_extra)
    else:
        logger.warning("Request rejected", extra=log_extra)
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code, "request_id": request_id},
    )


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map a known domain exception to its status and code."""
    for exc_type in type(exc).__mro__:
        if exc_type in DOMAIN_ERRORS:
            status_code, code = DOMAIN_ERRORS[exc_type]
            return error_response(request, status_code, code, str(exc))
    raise exc


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.monotonic()

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Open the Gemini and content proxy clients for the app's lifetime."""
    gemini = await init_gemini()
    if not gemini.available:
        logger.warning("Gemini not configured, batch rows will get failure comments")
    await init_content_proxy()

    yield

    await close_gemini()
    await close_content_proxy()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        # Export downloads read the filename from this header
        expose_headers=["Content-Disposition"],
    )

    for exc_type in DOMAIN_ERRORS:
        app.add_exception_handler(exc_type, domain_error_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = "; ".join(
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        return error_response(
            request, status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", message
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            extra={"request_id": _request_id(request), "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An internal error occurred. Please try again later.",
        )

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_v1_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "media_scoring.main:app",
        host=get_settings().host,
        port=get_settings().port,
    )
