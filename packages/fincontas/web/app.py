"""FastAPI application factory.

``create_app`` wires settings, logging, the shared engine, the migration
runner and the token verifier onto ``app.state``. Every request awaits
``MigrationRunner.ensure_schema`` before reaching a route; a failed migration
answers 500 and is retried by the next request.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fincontas_db import MigrationError, MigrationRunner
from fincontas_db.client import get_engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..auth import build_token_verifier
from ..config import Settings, load_settings
from ..logging_setup import configure_logging, get_logger
from .routes import ROUTERS

logger = get_logger("fincontas.web")

DEFAULT_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:4173",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:4173",
)
LOCAL_AND_PREVIEW_ORIGINS = (
    r"https?://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?"
    r"|https://[A-Za-z0-9.-]+\.(workers|pages)\.dev"
)


def allowed_origins(settings: Settings) -> list[str]:
    origins = list(DEFAULT_ORIGINS)
    origins.extend(o for o in settings.allowed_origins if o not in origins)
    return origins


def create_app(
    settings: Settings | None = None, runner: MigrationRunner | None = None
) -> FastAPI:
    """Build the API; ``runner`` defaults to the bundled migrations on the settings' database."""

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    engine = get_engine(database_url=settings.database_url)

    app = FastAPI(title="FinContas API")
    app.state.settings = settings
    app.state.migrations = runner or MigrationRunner(engine)
    app.state.token_verifier = build_token_verifier(settings)

    @app.middleware("http")
    async def ensure_schema(request: Request, call_next):
        try:
            await run_in_threadpool(request.app.state.migrations.ensure_schema)
        except (MigrationError, SQLAlchemyError):
            logger.exception("Failed to ensure database schema")
            return JSONResponse({"error": "Database not ready"}, status_code=500)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"error": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
            status_code=400,
        )

    for router in ROUTERS:
        app.include_router(router)

    # Added last so it wraps the schema middleware and answers preflights first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(settings),
        allow_origin_regex=LOCAL_AND_PREVIEW_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )
    return app
