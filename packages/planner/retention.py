"""Retention purge for soft-deleted tasks."""

from __future__ import annotations

import datetime as dt
import hmac
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .errors import ConfigurationError, UnauthorizedError
from .models import ItemStatus, Task, utcnow
from .service import DEFAULT_RETENTION_DAYS

__all__ = ["authorize_cron_request", "purge_cutoff", "purge_deleted_tasks"]

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def _matches(candidate: Optional[str], secret: str) -> bool:
    if candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def authorize_cron_request(
    secret: Optional[str],
    *,
    authorization: Optional[str] = None,
    cron_secret: Optional[str] = None,
) -> None:
    """Check a scheduler call against the configured shared secret.

    Accepts either ``X-Cron-Secret: <secret>`` or ``Authorization: Bearer
    <secret>``. Fails closed when no secret is configured.
    """
    if not secret:
        logger.error("purge_secret_missing")
        raise ConfigurationError("CRON_SECRET not configured")

    if _matches(cron_secret, secret):
        return
    if authorization and authorization.startswith(BEARER_PREFIX):
        if _matches(authorization[len(BEARER_PREFIX) :], secret):
            return

    logger.warning("purge_unauthorized")
    raise UnauthorizedError()


def purge_cutoff(
    now: Optional[dt.datetime] = None, retention_days: int = DEFAULT_RETENTION_DAYS
) -> dt.datetime:
    return (now or utcnow()) - dt.timedelta(days=retention_days)


def purge_deleted_tasks(
    session: Session,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    now: Optional[dt.datetime] = None,
) -> int:
    """Hard-delete tasks soft-deleted at or before the retention cutoff."""

    cutoff = purge_cutoff(now, retention_days)
    result = session.execute(
        delete(Task)
        .where(Task.status == ItemStatus.DELETED, Task.deleted_at <= cutoff)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    # Drop purged rows still held in the identity map.
    session.expire_all()

    deleted = result.rowcount or 0
    logger.info("tasks_purged", deleted_count=deleted, cutoff=cutoff.isoformat())
    return deleted
