"""
models/feed_reaction.py — Thumbs up / down on a public IOU in the feed.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow


class ReactionType(str, enum.Enum):
    UP   = "up"
    DOWN = "down"


class FeedReaction(db.Model):
    __tablename__ = "feed_reactions"

    __table_args__ = (
        # One reaction per user per IOU; reacting again replaces it.
        UniqueConstraint("user_id", "iou_id", name="uq_feed_reactions_user_iou"),
        enum_check("reaction_type", ReactionType, "ck_feed_reactions_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    iou_id: Mapped[int] = mapped_column(
        ForeignKey("ious.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reaction_type: Mapped[str] = mapped_column(String(10), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<FeedReaction user={self.user_id} "
            f"iou={self.iou_id} "
            f"type={self.reaction_type}>"
        )
