"""
Luna Dream API.

Run with ``uvicorn luna.main:app`` or ``python -m luna.main``.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from luna.api import errors
from luna.api.deps import get_interpreter
from luna.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from luna.api.v1 import router as api_router
from luna.config import Settings, get_settings
from luna.logging_config import configure_logging, get_logger
from luna.schemas.common import HealthResponse

logger = get_logger(__name__)


def _startup_checks(settings: Settings) -> None:
    if settings.uses_dev_secrets and settings.environment != "development":
        logger.warning(
            "JWT secrets are the development defaults; set JWT_SECRET and JWT_REFRESH_SECRET",
            extra={"environment": settings.environment},
        )
    if not get_interpreter().configured:
        logger.warning("OPENAI_API_KEY not set, interpretations will be mocked")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application: middleware, error envelope, routes."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(
            log_level=settings.log_level,
            environment=settings.environment,
            debug=settings.debug,
        )
        logger.info("Starting %s v%s", settings.project_name, settings.version)
        _startup_checks(settings)
        yield
        logger.info("Shutting down")

    app = FastAPI(
        title=settings.project_name,
        description="Account management with JWT authentication, and dream interpretation.",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Added last = outermost, so CORS headers reach error responses too
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[
            REQUEST_ID_HEADER,
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )

    errors.init_app(app, expose_errors=settings.debug)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        return HealthResponse(
            version=settings.version,
            timestamp=datetime.now(timezone.utc),
            ai_configured=get_interpreter().configured,
            environment=settings.environment,
        )

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("luna.main:app", host="0.0.0.0", port=_settings.port, reload=_settings.debug)
