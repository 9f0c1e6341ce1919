"""
models/payment.py — Partial payment logged against an IOU.

`amount` is optional: "half the pizza" is a valid payment. Only numeric
amounts count towards an IOU's `amount_paid`.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, utcnow


class Payment(db.Model):
    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint(
            "amount IS NULL OR amount >= 0",
            name="ck_payments_amount_non_negative",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE CASCADE: payments are owned by their IOU.
    iou_id: Mapped[int] = mapped_column(
        ForeignKey("ious.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    description: Mapped[str] = mapped_column(Text, nullable=False)

    paid_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    iou: Mapped["IOU"] = relationship(  # noqa: F821
        "IOU",
        back_populates="payments",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Payment id={self.id} "
            f"iou_id={self.iou_id} "
            f"amount={self.amount}>"
        )
