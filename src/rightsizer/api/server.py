# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""FastAPI application factory for the rightsizing REST API."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import rightsizer
from rightsizer.api.routes import router
from rightsizer.config import Settings, get_settings
from rightsizer.errors import NotFoundError, RecordValidationError
from rightsizer.store.dumps import DumpManager
from rightsizer.store.service import ResourceService

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_request_errors(exc: RequestValidationError) -> str:
    missing, invalid = [], []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        (missing if err.get("type") == "missing" else invalid).append(name)
    parts = []
    if missing:
        parts.append(f"Missing required fields: {', '.join(missing)}")
    if invalid:
        parts.append(f"Invalid fields: {', '.join(invalid)}")
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Map every failure to a JSON ``{"error": message}`` body."""

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(RecordValidationError)
    async def invalid_record(request: Request, exc: RecordValidationError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _describe_request_errors(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, str(exc) or exc.__class__.__name__)


def create_app(
    settings: Settings | None = None,
    service: ResourceService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings:
        Configuration; read from the environment when omitted.
    service:
        Pre-built query façade.  Built from *settings* when omitted.

    Returns
    -------
    FastAPI
        An application with CORS, request logging, JSON error handlers
        and all API routes included.
    """
    settings = settings or get_settings()
    service = service or ResourceService.from_settings(settings)
    dumps = DumpManager(service, settings.dump_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.db_create_tables:
            service.init_schema()
        if settings.seed_sample_data:
            service.seed_sample_data()
        logger.info(
            "Serving %s.%s, dumps in %s",
            settings.schema_label, settings.db_table, settings.dump_dir,
        )
        yield
        logger.info("Shutting down, closing connection pool")
        service.dispose()

    app = FastAPI(
        title="Rightsizer API",
        description=(
            "CPU request vs. usage reporting: find over-provisioned "
            "applications, rank rightsizing recommendations and track "
            "the optimization work done on them."
        ),
        version=rightsizer.__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.dumps = dumps

    # CORS: the dashboard is served from a different origin in development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    register_error_handlers(app)
    app.include_router(router)

    return app
