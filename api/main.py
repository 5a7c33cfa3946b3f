"""Lexi API Service.

FastAPI application for the Lexi legal document assistant: legal queries,
conversation history and contract drafting.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.llm.gemini_provider import get_generation_provider
from api.models import ERROR_RESPONSES, HealthResponse
from api.routers import (
    conversations as conversations_router,
    drafting as drafting_router,
    query as query_router,
)
from libs.caching.redis_client import close_redis_client
from libs.common.errors import APIError
from libs.common.settings import get_settings

logging.basicConfig(format="%(message)s", level=get_settings().log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

SERVICE_NAME = "lexi-api"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the shared Redis connection pool on shutdown."""
    yield
    await close_redis_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Lexi Legal Assistant API",
        description="AI-powered legal document assistant backed by Google Gemini",
        version=SERVICE_VERSION,
        default_response_class=ORJSONResponse,
        debug=settings.debug,
        lifespan=lifespan,
    )

    cors_origins = ["*"] if settings.is_development else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False if settings.is_development else True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError) -> ORJSONResponse:
        """Render every domain error as ``{"error_code", "message"}`` with its status."""
        logger.warning(
            "Request rejected",
            request_id=getattr(request.state, "request_id", "unknown"),
            error_code=exc.error_code,
            status_code=exc.status_code,
            error=exc.message,
        )
        return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        """Limit request body size to prevent abuse."""
        max_size = 1024 * 1024  # 1MB

        if request.method in ["POST", "PUT", "PATCH"]:
            content_length = request.headers.get("content-length")
            if content_length and int(content_length) > max_size:
                return ORJSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "error_code": "REQUEST_TOO_LARGE",
                        "message": f"Request body too large. Maximum size: {max_size} bytes",
                    },
                )

        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and structured data."""
        start_time = time.time()
        request_id = f"req_{int(start_time * 1000000)}"
        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                request_id=request_id,
                error=str(e),
                process_time_ms=round((time.time() - start_time) * 1000, 2),
                exc_info=True,
            )
            raise

        logger.info(
            "Request completed",
            request_id=request_id,
            status_code=response.status_code,
            process_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(query_router.router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(conversations_router.router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(drafting_router.router, prefix="/api", responses=ERROR_RESPONSES)

    @app.get("/healthz", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Liveness probe.

        Example:
            ```bash
            curl http://localhost:8000/healthz
            ```
        """
        return HealthResponse(status="healthy", service=SERVICE_NAME, version=SERVICE_VERSION)

    @app.get("/readyz", response_model=HealthResponse, tags=["Health"])
    async def readiness_check() -> ORJSONResponse:
        """Readiness probe: sends a minimal prompt down the Gemini model list.

        Returns 503 with the probe details when no model answers.
        """
        probe = await get_generation_provider().health_check(settings.provider_health_timeout)
        ready = probe["status"] == "healthy"
        body = HealthResponse(
            status="ready" if ready else "not_ready",
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            details={"google_ai": probe},
        )
        return ORJSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # For local development only
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
