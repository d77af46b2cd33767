"""
natrack.services.notification_service — Notification persistence
==================================================================

Notifications are append-only; the only mutation is setting ``read_at``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from natrack.database.models import Notification, NotificationType
from natrack.engine.messages import NotificationDraft

logger = logging.getLogger(__name__)

START_TYPES: tuple[str, ...] = (
    NotificationType.CHALLENGE_START.value,
    NotificationType.EVENT_START.value,
)

MAX_LIST_LIMIT = 200


def create_notification(
    session: Session, user_id: str, draft: NotificationDraft
) -> Notification:
    """Append a notification row for *user_id*."""
    notification = Notification(
        user_id=user_id,
        type=draft.type.value,
        title=draft.title or None,
        body=draft.body or None,
        meta=draft.meta or None,
    )
    session.add(notification)
    session.flush()
    return notification


def mark_start_notifications_read(
    session: Session, user_id: str, now: datetime | None = None
) -> int:
    """Mark every unread ``challenge_start`` / ``event_start`` as read."""
    result = session.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
            Notification.type.in_(START_TYPES),
        )
        .values(read_at=now or datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount  # type: ignore[return-value]


def mark_read(
    session: Session, user_id: str, notification_id: str, now: datetime | None = None
) -> bool:
    """Set ``read_at`` on one notification.  Already-read rows are left alone."""
    result = session.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
        )
        .values(read_at=now or datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def list_notifications(
    session: Session, user_id: str, limit: int = 50
) -> list[Notification]:
    """Newest first, capped at :data:`MAX_LIST_LIMIT`."""
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    return list(session.scalars(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
        .limit(limit)
    ).all())
