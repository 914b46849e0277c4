"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accounts.api.auth import router as auth_router
from accounts.api.middleware import CorrelationIdMiddleware
from accounts.api.routes import router
from accounts.api.users import router as users_router
from accounts.config import get_settings
from accounts.errors import AccountError, ErrorKind
from accounts.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Cached settings; missing token secrets already failed at import (CORS setup)
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    try:
        from accounts.database import init_database, run_migrations

        await init_database()
        await run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - account endpoints will fail until it is reachable",
        )

    logger.info(
        "application_started",
        log_level=settings.log_level,
        access_ttl_seconds=int(settings.access_token_ttl.total_seconds()),
        refresh_ttl_seconds=int(settings.refresh_token_ttl.total_seconds()),
    )

    yield

    from accounts.database import close_database

    await close_database()
    logger.info("application_shutdown")


def _error_response(
    request: Request, status_code: int, kind: str, detail: str
) -> JSONResponse:
    """Build the JSON error envelope shared by all handlers."""
    correlation_id = getattr(request.state, "correlation_id", None) or str(uuid4())
    headers = {"X-Correlation-Id": correlation_id}
    if status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=status_code,
        content={
            "error": kind,
            "detail": detail,
            "correlation_id": correlation_id,
        },
        headers=headers,
    )


app = FastAPI(
    title="Account Service",
    description="User accounts with JWT access/refresh token sessions",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Map AccountError kinds onto their HTTP status."""
    logger = structlog.get_logger()
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_failed",
        kind=exc.kind.value,
        reason=exc.reason.value if exc.reason else None,
        detail=exc.message,
        path=request.url.path,
    )
    return _error_response(request, exc.status_code, exc.kind.value, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation errors as 400 Bad Request."""
    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    structlog.get_logger().warning("validation_error", detail=detail)
    return _error_response(request, 400, ErrorKind.BAD_REQUEST.value, detail)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(router)
