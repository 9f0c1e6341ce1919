"""
models/blocked_user.py — One user blocking another.

A block is directional in storage but symmetric in effect: search, friend
requests, IOU creation and the feed all check both directions.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, utcnow


class BlockedUser(db.Model):
    __tablename__ = "blocked_users"

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocked_users_pair"),
        CheckConstraint("blocker_id <> blocked_id", name="ck_blocked_users_no_self_block"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    blocker_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    blocked_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    blocked_user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[blocked_id],
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<BlockedUser blocker={self.blocker_id} blocked={self.blocked_id}>"
