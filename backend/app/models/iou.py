"""
models/iou.py — IOU table definition.

An IOU records that `debtor_id` owes `creditor_id`. `created_by` is whichever
of the two recorded it; the other party is the one who accepts or declines.

Invite IOUs are created with one party NULL and status `invite_pending`; the
missing party is filled in when the invite is accepted.

`amount` is optional. Debts like "a coffee" carry only a description.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow


class IOUStatus(str, enum.Enum):
    INVITE_PENDING  = "invite_pending"
    PENDING         = "pending"
    ACTIVE          = "active"
    PAYMENT_PENDING = "payment_pending"
    PAID            = "paid"
    CANCELLED       = "cancelled"
    EXPIRED         = "expired"


class Visibility(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC  = "public"


class IOU(db.Model):
    __tablename__ = "ious"

    __table_args__ = (
        enum_check("status", IOUStatus, "ck_ious_status"),
        enum_check("visibility", Visibility, "ck_ious_visibility"),
        CheckConstraint(
            "amount IS NULL OR amount >= 0",
            name="ck_ious_amount_non_negative",
        ),
        CheckConstraint(
            "debtor_id IS NULL OR creditor_id IS NULL OR debtor_id <> creditor_id",
            name="ck_ious_distinct_parties",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    debtor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    creditor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    currency: Mapped[str | None] = mapped_column(String(10))

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=IOUStatus.PENDING.value,
        server_default=IOUStatus.PENDING.value,
        index=True,
    )
    visibility: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Visibility.PRIVATE.value,
        server_default=Visibility.PRIVATE.value,
    )

    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime, index=True)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # ── Relationships ──────────────────────────────────────────────────────

    debtor: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[debtor_id],
    )
    creditor: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[creditor_id],
    )
    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="iou",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Payment.created_at.desc()",
    )

    def involves(self, user_id: int) -> bool:
        return user_id in (self.debtor_id, self.creditor_id)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<IOU id={self.id} "
            f"debtor={self.debtor_id} "
            f"creditor={self.creditor_id} "
            f"status={self.status}>"
        )
