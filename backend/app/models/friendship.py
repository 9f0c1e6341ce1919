"""
models/friendship.py — Friendship table definition.

One row per pair of users, whichever direction the request went. Lookups
between two users must always check both (requester, addressee) orders;
use services.friend_service.pair_clause() for that.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow


class FriendshipStatus(str, enum.Enum):
    PENDING  = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Friendship(db.Model):
    __tablename__ = "friendships"

    __table_args__ = (
        UniqueConstraint(
            "requester_id",
            "addressee_id",
            name="uq_friendships_requester_addressee",
        ),
        CheckConstraint(
            "requester_id <> addressee_id",
            name="ck_friendships_no_self_friendship",
        ),
        enum_check("status", FriendshipStatus, "ck_friendships_status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    requester_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addressee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FriendshipStatus.PENDING.value,
        server_default=FriendshipStatus.PENDING.value,
        index=True,
    )

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

    requester: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[requester_id],
    )
    addressee: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[addressee_id],
    )

    def other_party(self, user_id: int) -> int:
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Friendship id={self.id} "
            f"requester={self.requester_id} "
            f"addressee={self.addressee_id} "
            f"status={self.status}>"
        )
