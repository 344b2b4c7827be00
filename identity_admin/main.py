"""
Identity Admin: FastAPI Application.

This is the entry point for the application.
All routers and exception handlers are registered here.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from identity_admin.config import get_settings
from identity_admin.errors import IdentityError
from identity_admin.api.deps import get_audit_dispatcher, get_credential_service
from identity_admin.api.health import router as health_router
from identity_admin.api.auth import router as auth_router
from identity_admin.api.users import router as users_router
from identity_admin.api.groups import router as groups_router
from identity_admin.api.roles import router as roles_router
from identity_admin.api.audit_logs import router as audit_logs_router
from identity_admin.api.profile import router as profile_router
from identity_admin.models.base import Base, SessionLocal, engine
from identity_admin.services.role_service import RoleService

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def seed_reference_data() -> None:
    """Create tables, permissions, default roles and the optional first admin."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        service = RoleService(db)
        service.seed_defaults()
        if settings.BOOTSTRAP_ADMIN_PASSWORD:
            service.bootstrap_admin(
                settings.BOOTSTRAP_ADMIN_USERNAME,
                settings.BOOTSTRAP_ADMIN_EMAIL,
                settings.BOOTSTRAP_ADMIN_PASSWORD,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails fast on an unusable signing key
    get_credential_service()
    if settings.SEED_REFERENCE_DATA:
        seed_reference_data()

    dispatcher = get_audit_dispatcher()
    dispatcher.start()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    dispatcher.stop()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="User, role and group administration with JWT authentication",
    lifespan=lifespan,
)


# --- Access log ---

# Never written to the log, even at DEBUG
REDACTED_HEADERS = {"authorization", "cookie"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - started) * 1000)

    logger.info(
        "HTTP %s %s - Status: %d - Duration: %dms",
        request.method, request.url.path, response.status_code, duration_ms,
    )
    if logger.isEnabledFor(logging.DEBUG):
        headers = ", ".join(
            f"{name}: {'[REDACTED]' if name in REDACTED_HEADERS else value}"
            for name, value in request.headers.items()
        )
        logger.debug("Request Headers: %s", headers)
    return response


# --- Error responses ---

def error_body(status: int, message: str, path: str, **extra) -> dict:
    body = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "error": HTTPStatus(status).phrase,
        "message": message,
        "path": path,
    }
    body.update(extra)
    return body


@app.exception_handler(IdentityError)
async def handle_identity_error(request: Request, exc: IdentityError):
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message)
    else:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, request.url.path),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        errors.setdefault(field or "body", error["msg"])
    return JSONResponse(
        status_code=400,
        content=error_body(
            400, "Validation failed", request.url.path, validationErrors=errors
        ),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(500, "An unexpected error occurred", request.url.path),
    )


# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(groups_router)
app.include_router(roles_router)
app.include_router(audit_logs_router)
app.include_router(profile_router)
