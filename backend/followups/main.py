"""FastAPI application entry point."""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__, models
from .background import BackgroundTaskGroup
from .config import get_settings
from .database import engine
from .errors import (
    AuthenticationFailed,
    AuthenticationRequired,
    EditConflict,
    FollowUpsError,
    InactiveAccount,
    InvalidOrExpiredToken,
    NotFound,
    TransientStoreError,
    ValidationFailed,
)
from .logging_config import configure_logging
from .mailer import SMTPMailer
from .metrics import MetricsMiddleware, RequestMetrics
from .middleware import RateLimitMiddleware
from .routers.healthcheck import router as healthcheck_router
from .routers.metrics import router as metrics_router
from .routers.tokens import router as tokens_router
from .routers.users import router as users_router
from .routers.vehicles import router as vehicles_router

settings = get_settings()
configure_logging(settings.log_level)
logger = structlog.get_logger(__name__)

app = FastAPI(title="FollowUps API", version=__version__)
app.include_router(healthcheck_router)
app.include_router(users_router)
app.include_router(tokens_router)
app.include_router(vehicles_router)
app.include_router(metrics_router)

app.add_middleware(
    RateLimitMiddleware,
    rate=settings.limiter_rps,
    burst=settings.limiter_burst,
    enabled=settings.limiter_enabled,
)
if settings.trusted_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.trusted_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Expected-Version"],
    )

# Added last so it wraps everything above, rate limiting included.
app.state.metrics = RequestMetrics()
app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)

app.state.background = BackgroundTaskGroup(limit=settings.background_task_limit)
app.state.mailer = SMTPMailer.from_settings(settings)

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"

STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    EditConflict: status.HTTP_409_CONFLICT,
    AuthenticationFailed: status.HTTP_401_UNAUTHORIZED,
    AuthenticationRequired: status.HTTP_401_UNAUTHORIZED,
    InactiveAccount: status.HTTP_403_FORBIDDEN,
}


def error_response(status_code: int, detail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": detail}, headers=headers)


@app.exception_handler(FollowUpsError)
async def domain_error_handler(request: Request, exc: FollowUpsError) -> JSONResponse:
    """Translate a domain outcome into its HTTP response."""

    if isinstance(exc, ValidationFailed):
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.errors)

    if isinstance(exc, InvalidOrExpiredToken):
        return error_response(
            status.HTTP_401_UNAUTHORIZED,
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    for kind, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, kind):
            return error_response(status_code, exc.message)

    if isinstance(exc, TransientStoreError):
        logger.error(
            "store_unavailable",
            method=request.method,
            url=str(request.url),
            error=repr(exc.__cause__),
        )
    else:
        logger.error("unmapped_domain_error", method=request.method, url=str(request.url))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and parameters in the same field map."""

    errors = {}
    for error in exc.errors():
        location = [
            str(part)
            for part in error.get("loc", ())
            if part not in ("body", "query", "path", "header")
        ]
        errors.setdefault(".".join(location) or "body", error.get("msg", "invalid value"))
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        method=request.method,
        url=str(request.url),
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


@app.on_event("startup")
async def on_startup() -> None:
    """Ensure database tables exist."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    logger.info("database_pool_established", env=settings.env)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Let in-flight background mail finish, then release the pool."""

    app.state.background.close()
    drained = await app.state.background.wait_drained(timeout=settings.shutdown_timeout)
    if not drained:
        logger.warning("background_drain_timed_out", timeout=settings.shutdown_timeout)
    await engine.dispose()
    logger.info("server_stopped")
