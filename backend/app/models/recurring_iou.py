"""
models/recurring_iou.py — Template that spawns a pending IOU on a schedule.

`frequency` decides which of `day_of_week` (0=Sunday … 6=Saturday) or
`day_of_month` (1–31) is set; the other is NULL. `next_due_at` is recomputed
each time an IOU is generated.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow
from backend.app.models.iou import Visibility


class Frequency(str, enum.Enum):
    WEEKLY  = "weekly"
    MONTHLY = "monthly"


class RecurringIOU(db.Model):
    __tablename__ = "recurring_ious"

    __table_args__ = (
        enum_check("frequency", Frequency, "ck_recurring_ious_frequency"),
        enum_check("visibility", Visibility, "ck_recurring_ious_visibility"),
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week BETWEEN 0 AND 6)",
            name="ck_recurring_ious_day_of_week",
        ),
        CheckConstraint(
            "day_of_month IS NULL OR (day_of_month BETWEEN 1 AND 31)",
            name="ck_recurring_ious_day_of_month",
        ),
        CheckConstraint(
            "debtor_id <> creditor_id",
            name="ck_recurring_ious_distinct_parties",
        ),
        Index("idx_recurring_ious_next_due", "next_due_at", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    debtor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    creditor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10))
    visibility: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Visibility.PRIVATE.value,
        server_default=Visibility.PRIVATE.value,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # ── Recurrence ─────────────────────────────────────────────────────────
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    day_of_week: Mapped[int | None] = mapped_column(Integer)
    day_of_month: Mapped[int | None] = mapped_column(Integer)

    # ── Tracking ───────────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
    last_generated_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    next_due_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

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

    debtor: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[debtor_id],
    )
    creditor: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[creditor_id],
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<RecurringIOU id={self.id} "
            f"frequency={self.frequency} "
            f"next_due_at={self.next_due_at}>"
        )
