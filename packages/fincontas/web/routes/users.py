from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ..deps import CurrentUser

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
def me(user: CurrentUser) -> dict[str, Any]:
    return user.profile()
