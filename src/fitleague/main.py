"""FastAPI application for the fitness league submission service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .api import deps
from .api.routes import activities, cron, entries, submissions
from .api.exception_handlers import create_error_response, register_exception_handlers
from .api.middleware.rate_limit import limiter
from .exceptions import ErrorCode
from .services.auto_approve_scheduler import (
    get_auto_approve_scheduler,
    shutdown_auto_approve_scheduler,
)
from .utils.log_sanitizer import install_log_sanitizer

# Must run before any logging occurs
install_log_sanitizer()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure the root logger once; handlers added here also get the sanitizer."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    install_log_sanitizer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting fitleague v{__version__}")
    logger.info(f"Database: {settings.database_path}")
    if not settings.cron_secret:
        logger.warning("CRON_SECRET is not configured; /cron endpoints are unauthenticated")
    logger.info(f"Rate limit storage: {settings.rate_limit_storage_uri.split('://')[0]}")

    if settings.auto_approve_enabled:
        try:
            get_auto_approve_scheduler(deps.get_submission_service()).start()
        except Exception as e:
            logger.warning(f"Failed to start auto-approve scheduler: {e}")
    else:
        logger.info("Scheduled auto-approval is disabled")

    yield

    logger.info("Shutting down fitleague")
    shutdown_auto_approve_scheduler()


app = FastAPI(
    title="fitleague API",
    description="Submission scoring and validation for fitness leagues",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

# Rate limiting
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded exceptions."""
    return create_error_response(
        status_code=429,
        code=ErrorCode.RATE_LIMIT_EXCEEDED.value,
        message=f"Rate limit exceeded: {exc.detail}",
    )


_HTTP_ERROR_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMIT_EXCEEDED,
}


def http_error_code(status_code: int) -> ErrorCode:
    """Error code for a framework HTTP error; unlisted 4xx are client errors."""
    if status_code in _HTTP_ERROR_CODES:
        return _HTTP_ERROR_CODES[status_code]
    return ErrorCode.BAD_REQUEST if 400 <= status_code < 500 else ErrorCode.INTERNAL_ERROR


# Registered on the Starlette base class so routing 404/405 errors are wrapped too
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap framework HTTP errors (401s from auth, unknown routes) in the error envelope."""
    response = create_error_response(
        status_code=exc.status_code,
        code=http_error_code(exc.status_code).value,
        message=str(exc.detail),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)

# Include routers
app.include_router(entries.router, prefix="/api/v1", tags=["entries"])
app.include_router(submissions.router, prefix="/api/v1", tags=["submissions"])
app.include_router(activities.router, prefix="/api/v1", tags=["activities"])
app.include_router(cron.router, prefix="/api/v1", tags=["cron"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "fitleague API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
