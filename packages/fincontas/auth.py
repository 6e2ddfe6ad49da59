"""Bearer-token authentication.

A :class:`TokenVerifier` turns the token from ``Authorization: Bearer <token>``
into an :class:`AuthenticatedUser` or ``None`` when the token is not accepted.

- :class:`UserinfoTokenVerifier` asks the identity provider's OpenID Connect
  userinfo endpoint and uses the ``sub`` claim as the user id.
- :class:`DevTokenVerifier` accepts any non-empty token as a fixed user, for
  local development.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from .config import Settings
from .logging_setup import get_logger

logger = get_logger("fincontas.auth")


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    id: str
    claims: dict[str, Any] = field(default_factory=dict)

    def profile(self) -> dict[str, Any]:
        c = self.claims
        first = c.get("given_name")
        last = c.get("family_name")
        full = c.get("name") or (" ".join(p for p in (first, last) if p) or None)
        return {
            "id": self.id,
            "fullName": full,
            "firstName": first,
            "lastName": last,
            "emailAddress": c.get("email"),
            "imageUrl": c.get("picture"),
        }


class TokenVerifier(Protocol):
    def verify(self, token: str) -> AuthenticatedUser | None: ...


class UserinfoTokenVerifier:
    def __init__(self, userinfo_url: str, *, timeout: float = 10.0) -> None:
        self.userinfo_url = userinfo_url
        self.timeout = timeout

    def verify(self, token: str) -> AuthenticatedUser | None:
        try:
            resp = requests.get(
                self.userinfo_url,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            logger.info("Token rejected by identity provider: %s", e.response.status_code)
            return None
        except requests.RequestException as e:
            logger.warning("Identity provider unreachable: %s", e)
            return None

        try:
            claims = resp.json()
        except ValueError:
            logger.warning("Identity provider returned a non-JSON userinfo body")
            return None
        subject = claims.get("sub") if isinstance(claims, dict) else None
        if not subject:
            return None
        return AuthenticatedUser(id=str(subject), claims=claims)


class DevTokenVerifier:
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id

    def verify(self, token: str) -> AuthenticatedUser | None:
        if not token.strip():
            return None
        return AuthenticatedUser(id=self.user_id)


class RejectAllTokenVerifier:
    def verify(self, token: str) -> AuthenticatedUser | None:
        return None


def build_token_verifier(settings: Settings) -> TokenVerifier:
    if settings.auth_userinfo_url:
        return UserinfoTokenVerifier(settings.auth_userinfo_url)
    if settings.dev_user_id:
        logger.warning("Using development token verifier for user %s", settings.dev_user_id)
        return DevTokenVerifier(settings.dev_user_id)
    logger.warning(
        "No identity provider configured (FINCONTAS_AUTH_USERINFO_URL); "
        "all authenticated routes will return 401"
    )
    return RejectAllTokenVerifier()


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
