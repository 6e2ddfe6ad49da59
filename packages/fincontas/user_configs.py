"""Per-user key/value settings stored in ``user_configs``."""

from __future__ import annotations

from fincontas_db.models import UserConfig
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session


def get_config_value(session: Session, user_id: str, key: str) -> str | None:
    return session.scalar(
        select(UserConfig.config_value).where(
            UserConfig.user_id == user_id, UserConfig.config_key == key
        )
    )


def upsert_config_value(session: Session, user_id: str, key: str, value: str) -> None:
    result = session.execute(
        update(UserConfig)
        .where(UserConfig.user_id == user_id, UserConfig.config_key == key)
        .values(config_value=value, updated_at=func.current_timestamp())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.add(UserConfig(user_id=user_id, config_key=key, config_value=value))
        session.flush()
