"""HTTP-facing error types.

Service functions raise these directly; the web layer renders every
``HTTPException`` as ``{"error": <detail>}`` with the exception's status.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from .logging_setup import get_logger

logger = get_logger("fincontas.errors")


class ApiError(HTTPException):
    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(status_code=self.status, detail=message)
        self.message = message


class BadRequest(ApiError):
    status = 400


class Unauthorized(ApiError):
    status = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFound(ApiError):
    status = 404


class ServerError(ApiError):
    status = 500


@contextmanager
def translate_db_errors(message: str) -> Iterator[None]:
    """Log database failures with traceback and re-raise as :class:`ServerError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("%s", message)
        raise ServerError(message) from exc
