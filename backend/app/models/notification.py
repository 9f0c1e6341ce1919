"""
models/notification.py — In-app notification for a single user.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, utcnow


class NotificationType(str, enum.Enum):
    FRIEND_REQUEST    = "friend_request"
    FRIEND_ACCEPTED   = "friend_accepted"
    IOU_CREATED       = "iou_created"
    IOU_ACCEPTED      = "iou_accepted"
    IOU_DECLINED      = "iou_declined"
    PAYMENT_ADDED     = "payment_added"
    PAYMENT_REQUESTED = "payment_requested"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_DISPUTED  = "payment_disputed"
    IOU_PAID          = "iou_paid"
    INVITE_ACCEPTED   = "invite_accepted"
    INVITE_DECLINED   = "invite_declined"
    INVITE_EXPIRED    = "invite_expired"


class Notification(db.Model):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # Ids the client needs to deep-link (iou_id, invite_id, user_id, ...).
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Notification id={self.id} "
            f"user_id={self.user_id} "
            f"type={self.type} "
            f"read={self.read}>"
        )
