"""Process configuration read from the environment.

Entrypoints load a local ``.env`` with ``python-dotenv`` first; :class:`Settings`
then reads the process environment through ``pydantic-settings``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PLUGGY_API_URL = "https://api.pluggy.ai"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    database_url: str = Field(alias="DATABASE_URL")
    auth_userinfo_url: str | None = Field(default=None, alias="FINCONTAS_AUTH_USERINFO_URL")
    dev_user_id: str | None = Field(default=None, alias="FINCONTAS_DEV_USER_ID")
    pluggy_client_id: str | None = Field(default=None, alias="PLUGGY_CLIENT_ID")
    pluggy_client_secret: str | None = Field(default=None, alias="PLUGGY_CLIENT_SECRET")
    pluggy_api_url: str = Field(default=DEFAULT_PLUGGY_API_URL, alias="PLUGGY_API_URL")
    allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="FINCONTAS_ALLOWED_ORIGINS"
    )
    log_level: str | None = Field(default=None, alias="FINCONTAS_LOG_LEVEL")

    @field_validator(
        "database_url",
        "auth_userinfo_url",
        "dev_user_id",
        "pluggy_client_id",
        "pluggy_client_secret",
        "log_level",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("pluggy_api_url", mode="before")
    @classmethod
    def _default_api_url(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_PLUGGY_API_URL
        return value.strip() if isinstance(value, str) else value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        return tuple(o.strip().rstrip("/") for o in value if o.strip().rstrip("/"))


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from the process environment.

    Values in ``environ`` take precedence over the process environment.
    A missing or blank ``DATABASE_URL`` raises ``RuntimeError``.
    """

    try:
        return Settings(**dict(environ or {}))
    except ValidationError as e:
        fields = {err["loc"][0] for err in e.errors() if err["loc"]}
        if fields & {"DATABASE_URL", "database_url"}:
            raise RuntimeError("DATABASE_URL is not set; cannot initialize database client") from e
        raise RuntimeError(f"Invalid configuration: {e}") from e
