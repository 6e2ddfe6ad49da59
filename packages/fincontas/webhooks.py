"""Outgoing webhook configuration, test delivery and delivery log."""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests
from fincontas_db.models import WebhookConfig, WebhookLog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .errors import BadRequest
from .formatters import iso_utc, to_boolean, to_int, utc_now
from .logging_setup import get_logger

logger = get_logger("fincontas.webhooks")

USER_AGENT = "FinContasApp-Webhook/1.0"
DEFAULT_LOG_LIMIT = 20
MAX_LOG_LIMIT = 100


@dataclass(frozen=True, slots=True)
class WebhookTestResult:
    success: bool
    status: int | None = None
    error: str | None = None


def post_json(url: str, payload: Mapping[str, Any], *, timeout: float = 10.0) -> tuple[int, str]:
    """POST ``payload`` and return ``(status, body)``; HTTP error statuses are returned, not raised."""

    resp = requests.post(
        url, json=dict(payload), headers={"User-Agent": USER_AGENT}, timeout=timeout
    )
    return resp.status_code, resp.text


def _config(session: Session, user_id: str) -> WebhookConfig | None:
    return session.scalar(select(WebhookConfig).where(WebhookConfig.user_id == user_id))


def get_config(session: Session, user_id: str) -> dict[str, Any]:
    config = _config(session, user_id)
    if config is None:
        return {"webhookUrl": "", "events": [], "isActive": True}
    return {
        "webhookUrl": config.webhook_url,
        "events": json.loads(config.events) if config.events else [],
        "isActive": bool(config.is_active),
    }


def save_config(session: Session, user_id: str, body: Mapping[str, Any]) -> None:
    url = body.get("webhookUrl")
    if not isinstance(url, str) or not url.strip():
        raise BadRequest("Webhook URL is required")

    events = body.get("events") or []
    values = {
        "webhook_url": url.strip(),
        "events": json.dumps(events, ensure_ascii=False),
        "is_active": body.get("isActive") is None or to_boolean(body.get("isActive")),
    }
    result = session.execute(
        update(WebhookConfig)
        .where(WebhookConfig.user_id == user_id)
        .values(**values, updated_at=func.current_timestamp())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.add(WebhookConfig(user_id=user_id, **values))
        session.flush()


def _log_attempt(session: Session, user_id: str, success: bool, error: str | None) -> None:
    session.add(
        WebhookLog(
            webhook_id=f"test-{int(time.time() * 1000)}",
            user_id=user_id,
            success=success,
            error_message=error,
            attempt_at=iso_utc(utc_now()),
        )
    )
    session.flush()


def send_test(session: Session, user_id: str) -> WebhookTestResult:
    """Send a ``test`` event to the configured URL and log the attempt."""

    config = _config(session, user_id)
    if config is None or not config.webhook_url:
        raise BadRequest("Webhook not configured")

    payload = {"event": "test", "timestamp": iso_utc(utc_now()), "userId": user_id}
    try:
        status, body = post_json(config.webhook_url, payload)
    except requests.RequestException as exc:
        logger.warning("Webhook test to %s failed: %s", config.webhook_url, exc)
        _log_attempt(session, user_id, False, str(exc))
        return WebhookTestResult(success=False, error=str(exc))

    if 200 <= status < 300:
        _log_attempt(session, user_id, True, None)
        return WebhookTestResult(success=True, status=status)

    error = f"HTTP {status}: {body}"
    logger.info("Webhook test to %s answered %s", config.webhook_url, status)
    _log_attempt(session, user_id, False, error)
    return WebhookTestResult(success=False, status=status, error=error)


def list_logs(session: Session, user_id: str, limit: Any = None) -> list[dict[str, Any]]:
    size = to_int(limit)
    if size is None:
        size = DEFAULT_LOG_LIMIT
    size = min(max(size, 1), MAX_LOG_LIMIT)
    rows = session.scalars(
        select(WebhookLog)
        .where(WebhookLog.user_id == user_id)
        .order_by(WebhookLog.created_at.desc(), WebhookLog.id.desc())
        .limit(size)
    )
    return [r.as_dict() for r in rows]
