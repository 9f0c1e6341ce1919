"""
services/iou_service.py — IOU lifecycle and payments.

Status machine (anything else is rejected):

  operation      actor                  from             to
  ─────────────  ─────────────────────  ───────────────  ───────────────
  accept         involved, not creator  pending          active
  decline        involved, not creator  pending          cancelled
  request-paid   debtor                 active           payment_pending
  confirm-paid   creditor               payment_pending  paid
  dispute        creditor               payment_pending  active
  mark-paid      creditor               active           paid
  delete         creator                pending          (row deleted)

An IOU that does not exist, is not visible to the caller, or is not in the
required state is reported as IOU_NOT_FOUND (404). A caller who is a party
but the wrong actor gets FORBIDDEN (403). Every transition notifies the
other party.

Overpayment (cumulative payments > amount) is allowed: the payment is
recorded and an OVERPAYMENT warning is returned alongside it.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode, WarningCode
from backend.app.models.base import utcnow
from backend.app.models.iou import IOU, IOUStatus
from backend.app.models.notification import NotificationType
from backend.app.models.payment import Payment
from backend.app.models.user import User
from backend.app.serializers import amount_paid
from backend.app.services import notification_service
from backend.app.services.blocking_service import is_blocked_either_way
from backend.app.services.friend_service import are_friends


# ── Private helpers ────────────────────────────────────────────────────────

def _display_name(user: User | None) -> str:
    if user is None:
        return "Someone"
    return user.first_name or user.username


def _describe(iou: IOU) -> str:
    if iou.amount is not None:
        return f"\"{iou.description}\" ({iou.currency or '$'}{iou.amount})"
    return f"\"{iou.description}\""


def _iou_not_found(iou_id: int, detail: str = "does not exist") -> AppError:
    return AppError(
        ErrorCode.IOU_NOT_FOUND,
        f"IOU {iou_id} {detail}.",
        404,
    )


def _get_visible_iou(iou_id: int, user_id: int, session: Session) -> IOU:
    """Returns the IOU if `user_id` is one of its parties, else IOU_NOT_FOUND."""
    iou = session.get(IOU, iou_id)
    if iou is None or not iou.involves(user_id):
        raise _iou_not_found(iou_id)
    return iou


def _require_counterparty_relationship(caller_id: int, other_id: int, session: Session) -> User:
    """Shared checks for IOU and UOMe creation. Returns the other user."""
    if caller_id == other_id:
        raise AppError(
            ErrorCode.SELF_IOU,
            "You cannot create an IOU with yourself.",
            422,
        )

    other = session.get(User, other_id)
    if other is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {other_id} does not exist.",
            404,
        )

    if is_blocked_either_way(caller_id, other_id, session):
        raise AppError(
            ErrorCode.BLOCKED,
            "You cannot create an IOU with this user.",
            403,
        )

    if not are_friends(caller_id, other_id, session):
        raise AppError(
            ErrorCode.NOT_FRIENDS,
            "You can only create IOUs with friends.",
            400,
        )
    return other


# ── Reads ──────────────────────────────────────────────────────────────────

def list_ious(
        user_id: int,
        session: Session,
        filter_: str = "all",
        status: str | None = None,
) -> list[IOU]:
    """
    IOUs involving `user_id`, newest first.

    filter_: "owed_by_me" (caller is debtor), "owed_to_me" (caller is
             creditor) or "all".
    """
    if filter_ == "owed_by_me":
        stmt = select(IOU).where(IOU.debtor_id == user_id)
    elif filter_ == "owed_to_me":
        stmt = select(IOU).where(IOU.creditor_id == user_id)
    else:
        stmt = select(IOU).where(or_(IOU.debtor_id == user_id, IOU.creditor_id == user_id))

    if status:
        stmt = stmt.where(IOU.status == status)

    stmt = stmt.order_by(IOU.created_at.desc(), IOU.id.desc())
    return list(session.execute(stmt).scalars().all())


def get_iou(iou_id: int, user_id: int, session: Session) -> IOU:
    return _get_visible_iou(iou_id, user_id, session)


def list_payments(iou_id: int, user_id: int, session: Session) -> list[Payment]:
    iou = _get_visible_iou(iou_id, user_id, session)
    stmt = (
        select(Payment)
        .where(Payment.iou_id == iou.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Creation ───────────────────────────────────────────────────────────────

def _create(
        debtor_id: int,
        creditor_id: int,
        creator: User,
        data: dict,
        session: Session,
) -> IOU:
    iou = IOU(
        debtor_id=debtor_id,
        creditor_id=creditor_id,
        created_by=creator.id,
        description=data["description"],
        amount=data.get("amount"),
        currency=data.get("currency"),
        status=IOUStatus.PENDING.value,
        visibility=data.get("visibility") or creator.default_iou_visibility,
        due_date=data.get("due_date"),
        notes=data.get("notes"),
    )
    session.add(iou)
    session.flush()
    return iou


def create_iou(debtor_id: int, data: dict, session: Session) -> IOU:
    """
    The caller records that they owe `data["creditor_id"]`.

    Args:
        debtor_id: The authenticated caller.
        data:      Validated dict from CreateIOUSchema.
    """
    creditor_id = data["creditor_id"]
    _require_counterparty_relationship(debtor_id, creditor_id, session)
    debtor = session.get(User, debtor_id)

    iou = _create(debtor_id, creditor_id, debtor, data, session)

    notification_service.notify(
        creditor_id,
        NotificationType.IOU_CREATED,
        "New IOU",
        f"{_display_name(debtor)} says they owe you {_describe(iou)}.",
        session,
        data={"iou_id": iou.id},
    )
    return iou


def create_uome(creditor_id: int, data: dict, session: Session) -> IOU:
    """
    The caller records that `data["debtor_id"]` owes them.

    Args:
        creditor_id: The authenticated caller.
        data:        Validated dict from CreateUOMeSchema.
    """
    debtor_id = data["debtor_id"]
    _require_counterparty_relationship(creditor_id, debtor_id, session)
    creditor = session.get(User, creditor_id)

    iou = _create(debtor_id, creditor_id, creditor, data, session)

    notification_service.notify(
        debtor_id,
        NotificationType.IOU_CREATED,
        "New IOU",
        f"{_display_name(creditor)} says you owe them {_describe(iou)}.",
        session,
        data={"iou_id": iou.id},
    )
    return iou


# ── Transitions ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Transition:
    from_status: IOUStatus
    to_status: IOUStatus
    # Returns True when `user_id` may perform the transition on `iou`.
    actor_check: Callable[[IOU, int], bool]
    actor_error: str
    notification_type: NotificationType
    notification_title: str
    notification_verb: str
    sets_paid_at: bool = False


def _is_non_creator(iou: IOU, user_id: int) -> bool:
    return iou.created_by != user_id


def _is_debtor(iou: IOU, user_id: int) -> bool:
    return iou.debtor_id == user_id


def _is_creditor(iou: IOU, user_id: int) -> bool:
    return iou.creditor_id == user_id


TRANSITIONS: dict[str, Transition] = {
    "accept": Transition(
        IOUStatus.PENDING, IOUStatus.ACTIVE,
        _is_non_creator, "Only the other party can accept this IOU.",
        NotificationType.IOU_ACCEPTED, "IOU accepted", "accepted",
    ),
    "decline": Transition(
        IOUStatus.PENDING, IOUStatus.CANCELLED,
        _is_non_creator, "Only the other party can decline this IOU.",
        NotificationType.IOU_DECLINED, "IOU declined", "declined",
    ),
    "request-paid": Transition(
        IOUStatus.ACTIVE, IOUStatus.PAYMENT_PENDING,
        _is_debtor, "Only the debtor can mark this IOU as paid for confirmation.",
        NotificationType.PAYMENT_REQUESTED, "Payment confirmation requested", "says they paid",
    ),
    "confirm-paid": Transition(
        IOUStatus.PAYMENT_PENDING, IOUStatus.PAID,
        _is_creditor, "Only the creditor can confirm payment.",
        NotificationType.PAYMENT_CONFIRMED, "Payment confirmed", "confirmed payment for",
        sets_paid_at=True,
    ),
    "dispute": Transition(
        IOUStatus.PAYMENT_PENDING, IOUStatus.ACTIVE,
        _is_creditor, "Only the creditor can dispute a payment.",
        NotificationType.PAYMENT_DISPUTED, "Payment disputed", "disputed payment for",
    ),
    "mark-paid": Transition(
        IOUStatus.ACTIVE, IOUStatus.PAID,
        _is_creditor, "Only the creditor can mark this IOU as paid.",
        NotificationType.IOU_PAID, "IOU paid", "marked as paid",
        sets_paid_at=True,
    ),
}


def transition_iou(iou_id: int, user_id: int, action: str, session: Session) -> IOU:
    """
    Applies one of TRANSITIONS to an IOU on behalf of `user_id`.

    Raises:
      IOU_NOT_FOUND (404) — missing, not a party, or not in `from_status`
      FORBIDDEN     (403) — a party, but not the actor the transition needs
    """
    transition = TRANSITIONS[action]
    iou = _get_visible_iou(iou_id, user_id, session)

    if iou.status != transition.from_status.value:
        raise _iou_not_found(iou_id, f"is not {transition.from_status.value}")

    if not transition.actor_check(iou, user_id):
        raise AppError(ErrorCode.FORBIDDEN, transition.actor_error, 403)

    iou.status = transition.to_status.value
    if transition.sets_paid_at:
        iou.paid_at = utcnow()
    session.flush()

    actor = session.get(User, user_id)
    other_id = iou.creditor_id if user_id == iou.debtor_id else iou.debtor_id
    notification_service.notify(
        other_id,
        transition.notification_type,
        transition.notification_title,
        f"{_display_name(actor)} {transition.notification_verb} {_describe(iou)}.",
        session,
        data={"iou_id": iou.id},
    )
    return iou


def delete_iou(iou_id: int, user_id: int, session: Session) -> None:
    """The creator may withdraw an IOU the other party has not answered yet."""
    iou = _get_visible_iou(iou_id, user_id, session)

    if iou.status != IOUStatus.PENDING.value:
        raise _iou_not_found(iou_id, "is not pending")

    if iou.created_by != user_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "Only the creator can delete this IOU.",
            403,
        )

    session.delete(iou)
    session.flush()


# ── Payments ───────────────────────────────────────────────────────────────

def add_payment(
        iou_id: int,
        user_id: int,
        data: dict,
        session: Session,
) -> tuple[Payment, list[dict]]:
    """
    Records a (possibly partial, possibly non-numeric) payment on an active IOU.

    Returns:
        (Payment, warnings). warnings holds an OVERPAYMENT entry when the
        running total exceeds the IOU amount.
    """
    iou = _get_visible_iou(iou_id, user_id, session)

    if iou.status != IOUStatus.ACTIVE.value:
        raise AppError(
            ErrorCode.INVALID_STATUS,
            "Payments can only be added to active IOUs.",
            400,
        )

    amount: Decimal | None = data.get("amount")
    payment = Payment(
        iou_id=iou.id,
        amount=amount,
        description=data["description"],
        created_by=user_id,
    )
    iou.payments.append(payment)
    session.flush()

    warnings: list[dict] = []
    total_paid = amount_paid(iou)
    if iou.amount is not None and amount is not None and total_paid > iou.amount:
        warnings.append({
            "code": WarningCode.OVERPAYMENT,
            "message": (
                f"Payments now total {total_paid}, which exceeds the IOU amount "
                f"of {iou.amount}. Recording anyway."
            ),
        })

    actor = session.get(User, user_id)
    other_id = iou.creditor_id if user_id == iou.debtor_id else iou.debtor_id
    notification_service.notify(
        other_id,
        NotificationType.PAYMENT_ADDED,
        "Payment added",
        f"{_display_name(actor)} logged a payment on {_describe(iou)}: {payment.description}.",
        session,
        data={"iou_id": iou.id, "payment_id": payment.id},
    )
    return payment, warnings
