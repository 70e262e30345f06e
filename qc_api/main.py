from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, IntegrityError
from qc_api.core.config import settings
from qc_api.core.logging import configure_logging
from qc_api.api.routes import health, auth, couples, checkins, notes, action_items, reminders, milestones
from qc_api.schemas.common import ErrorResponse
from qc_api.domain.errors import (
    AuthorizationError, ConflictError, DomainError, InvalidStateError,
    NotFoundError, PersistenceError, ValidationError,
)
import logging

# (type, status, error, error_code), first match wins
DOMAIN_ERRORS = (
    (NotFoundError, 404, "Resource not found", "NOT_FOUND"),
    (InvalidStateError, 409, "Invalid session state", "INVALID_STATE"),
    (ConflictError, 409, "Conflict", "CONFLICT"),
    (AuthorizationError, 403, "Forbidden", "FORBIDDEN"),
    (ValidationError, 422, "Validation failed", "VALIDATION_ERROR"),
    (PersistenceError, 503, "Storage unavailable", "PERSISTENCE_ERROR"),
)


def _error_body(exc: DomainError) -> tuple[int, dict]:
    for cls, status, error, code in DOMAIN_ERRORS:
        if isinstance(exc, cls):
            return status, ErrorResponse(error=error, detail=str(exc), error_code=code).model_dump()
    return 400, ErrorResponse(error="Request failed", detail=str(exc), error_code="DOMAIN_ERROR").model_dump()


def create_app(init_database: bool = None) -> FastAPI:
    configure_logging()
    logger = logging.getLogger(__name__)
    if init_database is None:
        init_database = settings.APP_ENV != "test"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_database:
            from qc_api.db.init_db import init_db
            init_db()
        yield

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status, body = _error_body(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        logger.error(f"Database operational error: {exc}")
        return JSONResponse(
            status_code=503,
            content={
                "error": "Database connection error",
                "detail": "Unable to connect to the database. Please try again later.",
                "error_code": "DATABASE_CONNECTION_ERROR"
            }
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.error(f"Database integrity error: {exc}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Data integrity violation",
                "detail": "The operation violates database constraints",
                "error_code": "DATA_INTEGRITY_ERROR"
            }
        )

    # routes
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(couples.router)
    app.include_router(checkins.router)
    app.include_router(notes.router)
    app.include_router(action_items.router)
    app.include_router(reminders.router)
    app.include_router(milestones.router)
    return app

app = create_app()
