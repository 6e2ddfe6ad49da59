"""Request dependencies shared by the route modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated, Any

from fastapi import Body, Depends, Header, Request
from fincontas_db.client import session_scope
from sqlalchemy.orm import Session

from ..auth import AuthenticatedUser, bearer_token
from ..config import Settings
from ..errors import Unauthorized, translate_db_errors


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def current_user(
    request: Request, authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    token = bearer_token(authorization)
    if token is None:
        raise Unauthorized()
    user = request.app.state.token_verifier.verify(token)
    if user is None:
        raise Unauthorized()
    return user


CurrentUser = Annotated[AuthenticatedUser, Depends(current_user)]
AppSettings = Annotated[Settings, Depends(get_settings)]
JsonBody = Annotated[dict[str, Any], Body()]


@contextmanager
def db_session(message: str) -> Iterator[Session]:
    """Transactional session whose database errors answer 500 with ``message``."""

    with translate_db_errors(message), session_scope() as session:
        yield session
