from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from fincontas_db.client import get_engine
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ...formatters import iso_utc, utc_now
from ...logging_setup import get_logger

logger = get_logger("fincontas.web.health")

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health() -> JSONResponse:
    try:
        with get_engine().connect() as conn:
            row = conn.execute(text("SELECT 1")).first()
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "timestamp": iso_utc(utc_now()), "error": str(exc)},
            status_code=500,
        )
    return JSONResponse(
        {
            "status": "healthy",
            "timestamp": iso_utc(utc_now()),
            "database": "connected" if row else "disconnected",
        }
    )
