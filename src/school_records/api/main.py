"""
FastAPI application factory

create_app() builds the engine, session factory and services once and keeps
them on app.state; routes reach them through api.dependencies. Domain errors
map to HTTP status codes here:

- NotFound -> 404
- MalformedIdentifier / InvalidConfiguration -> 422
- SequenceUnavailable -> 503 (retryable)

Run with: uvicorn --factory school_records.api.main:create_app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from school_records.api.container import build_services
from school_records.api.database.session import init_models
from school_records.api.routes import grading, health, identifiers
from school_records.config import Settings, get_settings
from school_records.exceptions import (
    InvalidConfiguration,
    MalformedIdentifier,
    NotFound,
    SchoolRecordsError,
    SequenceUnavailable,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    MalformedIdentifier: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidConfiguration: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SequenceUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def school_records_error_handler(request: Request, exc: SchoolRecordsError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    body = {"detail": str(exc), "error": type(exc).__name__}
    headers = None
    if getattr(exc, "retryable", False):
        body["retryable"] = True
        headers = {"Retry-After": "1"}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.auto_create_tables:
        await init_models(app.state.engine)
    logger.info(f"✓ {settings.app_name} {settings.app_version} started ({settings.environment})")

    yield

    await app.state.engine.dispose()
    logger.info("Database connections closed")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    services = build_services(settings)
    app.state.settings = settings
    app.state.services = services
    app.state.engine = services.engine
    app.state.session_factory = services.session_factory
    app.state.identifier_service = services.identifiers
    app.state.grading_service = services.grading

    app.add_exception_handler(SchoolRecordsError, school_records_error_handler)

    app.include_router(health.router)
    app.include_router(identifiers.router)
    app.include_router(grading.router)
    return app
