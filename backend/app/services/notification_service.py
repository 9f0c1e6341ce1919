"""
services/notification_service.py — In-app notifications.

Other services call notify() inside their own unit of work; the route that
triggered the change commits both the change and the notification together.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.notification import Notification, NotificationType


def notify(
        user_id: int,
        type_: NotificationType,
        title: str,
        message: str,
        session: Session,
        data: dict | None = None,
) -> Notification:
    """Queues a notification for `user_id`. Flushed with the caller's other changes."""
    notification = Notification(
        user_id=user_id,
        type=type_.value,
        title=title,
        message=message,
        data=data or {},
    )
    session.add(notification)
    return notification


def list_notifications(
        user_id: int,
        limit: int,
        unread_only: bool,
        session: Session,
) -> list[Notification]:
    """Newest first. `limit` is already bounded by the query schema."""
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return list(session.execute(stmt).scalars().all())


def unread_count(user_id: int, session: Session) -> int:
    return session.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
    ).scalar_one()


def mark_read(notification_id: int, user_id: int, session: Session) -> Notification:
    """
    Marks one notification read. Another user's notification is reported as
    not found so ids cannot be probed.
    """
    notification = session.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise AppError(
            ErrorCode.NOTIFICATION_NOT_FOUND,
            f"Notification {notification_id} does not exist.",
            404,
        )
    notification.read = True
    session.flush()
    return notification


def mark_all_read(user_id: int, session: Session) -> int:
    """Returns the number of notifications that were unread."""
    result = session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    return result.rowcount or 0
