"""
System event logging service.

Failures that must stay visible after the log lines scroll away (delivery, render,
webhook handling) are also written to the system_events table. All rows go through
log_event (or info/warn/error) so the payload shape stays consistent.
"""

import logging

from sqlalchemy.orm import Session

from app.db.models import SystemEvent
from app.middleware.correlation_id import get_correlation_id

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 500


def log_event(
    db: Session,
    level: str,
    event_type: str,
    user_id: str | None = None,
    payload: dict | None = None,
    exc: BaseException | None = None,
) -> SystemEvent:
    """
    Persist a system event.

    Args:
        db: Database session
        level: INFO, WARN or ERROR
        event_type: One of app.constants.event_types
        user_id: WhatsApp user the event concerns, if any
        payload: Extra data (copied, never mutated)
        exc: Exception whose type and (truncated) message go into payload["error"]

    Returns:
        Created SystemEvent object
    """
    normalized: dict = dict(payload) if payload else {}
    if exc is not None:
        normalized["error"] = {
            "type": type(exc).__name__,
            "message": str(exc)[:MAX_ERROR_MESSAGE_LENGTH],
        }
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        normalized["correlation_id"] = correlation_id

    event = SystemEvent(
        level=level.upper(),
        event_type=event_type,
        user_id=user_id,
        payload=normalized or None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def info(db: Session, event_type: str, user_id: str | None = None, payload: dict | None = None) -> SystemEvent:
    return log_event(db, "INFO", event_type, user_id=user_id, payload=payload)


def warn(
    db: Session,
    event_type: str,
    user_id: str | None = None,
    payload: dict | None = None,
    exc: BaseException | None = None,
) -> SystemEvent:
    return log_event(db, "WARN", event_type, user_id=user_id, payload=payload, exc=exc)


def error(
    db: Session,
    event_type: str,
    user_id: str | None = None,
    payload: dict | None = None,
    exc: BaseException | None = None,
) -> SystemEvent:
    return log_event(db, "ERROR", event_type, user_id=user_id, payload=payload, exc=exc)
