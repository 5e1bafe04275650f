import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from employee_api.core.config import settings
from employee_api.api.v1 import api_router
from employee_api.core.exceptions import AppError, AuthError, StoreError
from employee_api.core.logging_config import setup_logging, RequestLoggingMiddleware
from employee_api.db.session import AsyncSessionLocal, check_db_connection, engine, init_db
from employee_api.schemas.response import APIResponse, error_response, success_response
from employee_api.services.auth_service import AuthService

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger("employee_api")


class HealthResponse(BaseModel):
    """Health check response format."""
    status: str
    service: str
    version: str
    environment: str
    checks: dict[str, bool]


async def seed_default_admin() -> None:
    """Create the default admin account when it does not exist yet."""
    async with AsyncSessionLocal() as db:
        _, created = await AuthService(db).ensure_user(
            settings.DEFAULT_ADMIN_USERNAME,
            settings.DEFAULT_ADMIN_EMAIL,
            settings.DEFAULT_ADMIN_PASSWORD,
        )
    if created:
        logger.info(f"Default admin user '{settings.DEFAULT_ADMIN_USERNAME}' created")
    else:
        logger.info("Default admin user already exists")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create missing tables and seed the admin account.
    Shutdown: close pooled database connections.
    """
    logger.info("Application starting up...")
    await init_db()
    if settings.CREATE_DEFAULT_ADMIN:
        await seed_default_admin()
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Closing database connections...")
        await engine.dispose()
        logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="CRUD API for employee records with bearer-token authentication",
    version=settings.full_version,
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Errors raised by services and dependencies, already carrying status and messages."""
    error = exc.error
    if isinstance(exc, StoreError):
        logger.error(
            f"Store error on {request.method} {request.url.path}: {exc.error}",
            extra={"request_id": _request_id(request)},
        )
        # Driver messages can leak schema details
        if settings.is_production:
            error = None

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return error_response(exc.message, error, status_code=exc.status_code, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies, query parameters and field constraint violations."""
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(
        "Invalid request data",
        "; ".join(details) or None,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


# Global exception handler - catches all unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Returns the standard envelope with a reference id.
    In production, exception details are hidden to prevent information leakage.
    """
    error_id = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")

    logger.error(
        f"Unhandled exception [{error_id}]: {exc}\n"
        f"Path: {request.url.path}\n"
        f"Method: {request.method}\n"
        f"Traceback: {traceback.format_exc()}",
        extra={"request_id": _request_id(request)},
    )

    if settings.is_production:
        detail = f"An unexpected error occurred. Reference ID: {error_id}"
    else:
        detail = f"{exc.__class__.__name__}: {exc} (Reference ID: {error_id})"

    return error_response(
        "Internal server error",
        detail,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# CORS Middleware (env-driven)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware with timing and request IDs
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", response_model=APIResponse[HealthResponse])
async def health_check():
    """
    Reports service status. Returns 503 when the database is unreachable.
    """
    db_healthy = await check_db_connection()
    response = HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        service="employee-api",
        version=settings.full_version,
        environment=settings.ENVIRONMENT,
        checks={"database": db_healthy},
    )

    if not db_healthy:
        logger.warning(f"Health check failed: {response.checks}")
        return error_response(
            "Employee Records API is unavailable",
            "Database connection failed",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            data=response,
        )

    return success_response("Employee Records API is running", response)


@app.get("/")
async def root():
    return success_response(
        f"Welcome to the {settings.PROJECT_NAME}",
        {"version": settings.full_version, "api": settings.API_V1_STR},
    )
