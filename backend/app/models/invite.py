"""
models/invite.py — Invite link for an IOU with someone who has no account yet.

The token is the only credential needed to view or decline an invite, so it
is generated with `secrets` and never reused.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow


class InviteStatus(str, enum.Enum):
    PENDING   = "pending"
    ACCEPTED  = "accepted"
    DECLINED  = "declined"
    EXPIRED   = "expired"
    CANCELLED = "cancelled"


class InviteType(str, enum.Enum):
    IOU  = "iou"   # inviter owes the invitee
    UOME = "uome"  # invitee owes the inviter


class Invite(db.Model):
    __tablename__ = "iou_invites"

    __table_args__ = (
        enum_check("status", InviteStatus, "ck_iou_invites_status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    token: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        index=True,
    )

    iou_id: Mapped[int] = mapped_column(
        ForeignKey("ious.id", ondelete="CASCADE"),
        nullable=False,
    )
    invited_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    invitee_name: Mapped[str | None] = mapped_column(String(100))
    invitee_phone: Mapped[str | None] = mapped_column(String(20))
    invitee_email: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InviteStatus.PENDING.value,
        server_default=InviteStatus.PENDING.value,
    )
    claimed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
    )

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    iou: Mapped["IOU"] = relationship("IOU")  # noqa: F821
    inviter: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[invited_by],
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Invite id={self.id} "
            f"iou_id={self.iou_id} "
            f"status={self.status}>"
        )
