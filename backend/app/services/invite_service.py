"""
services/invite_service.py — Invite links for IOUs with people who have no account.

Lifecycle:
  create   → IOU (status invite_pending, missing party NULL) + invite (pending)
  view     → public; an overdue invite is expired on first view
  accept   → missing party filled with the caller, IOU → pending,
             friendship created if the two were not connected
  decline  → public; invite declined, IOU cancelled
  cancel   → inviter only; invite and IOU cancelled

The token is the only credential for viewing and declining, so it comes
from `secrets` and is never reused.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.constants import INVITE_EXPIRY_DAYS, INVITE_TOKEN_BYTES, MAX_PENDING_INVITES
from backend.app.errors import AppError, ErrorCode
from backend.app.models.base import utcnow
from backend.app.models.friendship import Friendship, FriendshipStatus
from backend.app.models.invite import Invite, InviteStatus, InviteType
from backend.app.models.iou import IOU, IOUStatus
from backend.app.models.notification import NotificationType
from backend.app.models.user import User
from backend.app.services import notification_service
from backend.app.services.blocking_service import is_blocked_either_way
from backend.app.services.friend_service import find_friendship

logger = logging.getLogger(__name__)

# Status of a non-pending invite → the 410 error code reported for it.
_GONE_CODES = {
    InviteStatus.EXPIRED.value: (ErrorCode.EXPIRED, "This invite has expired."),
    InviteStatus.ACCEPTED.value: (ErrorCode.CLAIMED, "This invite has already been claimed."),
    InviteStatus.DECLINED.value: (ErrorCode.DECLINED, "This invite was declined."),
    InviteStatus.CANCELLED.value: (ErrorCode.CANCELLED, "This invite was cancelled."),
}


# ── Private helpers ────────────────────────────────────────────────────────

def _invitee_label(invite: Invite) -> str:
    return invite.invitee_name or "someone"


def _get_by_token_or_404(token: str, session: Session) -> Invite:
    invite = session.execute(
        select(Invite).where(Invite.token == token)
    ).scalar_one_or_none()
    if invite is None:
        raise AppError(ErrorCode.INVITE_NOT_FOUND, "Invite not found.", 404)
    return invite


def _get_pending_by_token_or_404(token: str, session: Session) -> Invite:
    invite = _get_by_token_or_404(token, session)
    if invite.status != InviteStatus.PENDING.value:
        raise AppError(
            ErrorCode.INVITE_NOT_FOUND,
            "Invite not found or already used.",
            404,
        )
    return invite


def _is_overdue(invite: Invite, now: datetime) -> bool:
    return invite.expires_at <= now


def invite_url(token: str, base_path: str) -> str:
    return f"{base_path.rstrip('/')}/{token}"


def count_pending_invites(user_id: int, session: Session) -> int:
    return session.execute(
        select(func.count(Invite.id)).where(
            Invite.invited_by == user_id,
            Invite.status == InviteStatus.PENDING.value,
        )
    ).scalar_one()


# ── Create / list ──────────────────────────────────────────────────────────

def create_invite(
        user_id: int,
        data: dict,
        session: Session,
        now: datetime | None = None,
) -> Invite:
    """
    Creates an IOU awaiting a counterparty plus the invite that will supply one.

    Args:
        data: Validated dict from CreateInviteSchema.

    Raises:
        INVITE_LIMIT (400) — the caller already has MAX_PENDING_INVITES pending.
    """
    if count_pending_invites(user_id, session) >= MAX_PENDING_INVITES:
        raise AppError(
            ErrorCode.INVITE_LIMIT,
            f"You can have at most {MAX_PENDING_INVITES} pending invites.",
            400,
        )

    inviter = session.get(User, user_id)
    now = now or utcnow()

    # "iou": the inviter owes the invitee. "uome": the invitee owes the inviter.
    is_iou = data["type"] == InviteType.IOU.value
    iou = IOU(
        debtor_id=user_id if is_iou else None,
        creditor_id=None if is_iou else user_id,
        created_by=user_id,
        description=data["description"],
        amount=data.get("amount"),
        currency=data.get("currency"),
        status=IOUStatus.INVITE_PENDING.value,
        visibility=data.get("visibility") or inviter.default_iou_visibility,
        due_date=data.get("due_date"),
        notes=data.get("notes"),
    )
    session.add(iou)
    session.flush()

    invite = Invite(
        token=secrets.token_hex(INVITE_TOKEN_BYTES),
        iou_id=iou.id,
        invited_by=user_id,
        invitee_name=data.get("invitee_name"),
        invitee_phone=data.get("invitee_phone"),
        invitee_email=data.get("invitee_email"),
        status=InviteStatus.PENDING.value,
        expires_at=now + timedelta(days=INVITE_EXPIRY_DAYS),
    )
    session.add(invite)
    session.flush()
    return invite


def list_pending_invites(user_id: int, session: Session) -> list[Invite]:
    stmt = (
        select(Invite)
        .where(
            Invite.invited_by == user_id,
            Invite.status == InviteStatus.PENDING.value,
        )
        .order_by(Invite.created_at.desc(), Invite.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Public view ────────────────────────────────────────────────────────────

def expire_if_overdue(token: str, session: Session, now: datetime | None = None) -> bool:
    """
    Marks a pending, overdue invite (and its IOU) expired and tells the
    inviter. Returns True if it did. Unknown tokens are ignored here; the
    caller reports them through get_viewable_invite().

    Kept separate from the read so the route can commit the expiry before
    the read raises 410.
    """
    invite = session.execute(
        select(Invite).where(Invite.token == token)
    ).scalar_one_or_none()
    now = now or utcnow()

    if invite is None or invite.status != InviteStatus.PENDING.value or not _is_overdue(invite, now):
        return False

    invite.status = InviteStatus.EXPIRED.value
    invite.iou.status = IOUStatus.EXPIRED.value
    session.flush()

    notification_service.notify(
        invite.invited_by,
        NotificationType.INVITE_EXPIRED,
        "Invite expired",
        f"Your invite to {_invitee_label(invite)} has expired.",
        session,
        data={"invite_id": invite.id, "iou_id": invite.iou_id},
    )
    logger.info("Invite %s expired", invite.id)
    return True


def get_viewable_invite(token: str, session: Session) -> Invite:
    """
    Returns a pending invite for the public invite page.

    Raises:
      INVITE_NOT_FOUND (404)
      EXPIRED / CLAIMED / DECLINED / CANCELLED (410)
    """
    invite = _get_by_token_or_404(token, session)
    if invite.status in _GONE_CODES:
        code, message = _GONE_CODES[invite.status]
        raise AppError(code, message, 410)
    return invite


# ── Answering ──────────────────────────────────────────────────────────────

def accept_invite(token: str, user_id: int, session: Session, now: datetime | None = None) -> IOU:
    """
    The caller claims the invite and becomes the IOU's missing party.

    Raises:
      INVITE_NOT_FOUND (404) — unknown or no longer pending
      EXPIRED          (410)
      OWN_INVITE       (400) — the inviter tried to claim their own invite
      BLOCKED          (403) — a block stands between inviter and caller
    """
    invite = _get_pending_by_token_or_404(token, session)
    now = now or utcnow()

    if _is_overdue(invite, now):
        raise AppError(ErrorCode.EXPIRED, "This invite has expired.", 410)

    if invite.invited_by == user_id:
        raise AppError(
            ErrorCode.OWN_INVITE,
            "You cannot accept your own invite.",
            400,
        )

    if is_blocked_either_way(invite.invited_by, user_id, session):
        raise AppError(
            ErrorCode.BLOCKED,
            "You cannot accept an invite from this user.",
            403,
        )

    iou = invite.iou
    if iou.debtor_id is None:
        iou.debtor_id = user_id
    else:
        iou.creditor_id = user_id
    iou.status = IOUStatus.PENDING.value

    invite.status = InviteStatus.ACCEPTED.value
    invite.claimed_by = user_id

    if find_friendship(invite.invited_by, user_id, session) is None:
        session.add(Friendship(
            requester_id=invite.invited_by,
            addressee_id=user_id,
            status=FriendshipStatus.ACCEPTED.value,
        ))

    session.flush()

    claimer = session.get(User, user_id)
    notification_service.notify(
        invite.invited_by,
        NotificationType.INVITE_ACCEPTED,
        "Invite accepted",
        f"{claimer.first_name or claimer.username} accepted your invite for \"{iou.description}\".",
        session,
        data={"invite_id": invite.id, "iou_id": iou.id, "user_id": user_id},
    )
    return iou


def decline_invite(token: str, session: Session) -> Invite:
    """Anyone holding the link may decline it. Pending invites only (404 otherwise)."""
    invite = _get_pending_by_token_or_404(token, session)

    invite.status = InviteStatus.DECLINED.value
    invite.iou.status = IOUStatus.CANCELLED.value
    session.flush()

    notification_service.notify(
        invite.invited_by,
        NotificationType.INVITE_DECLINED,
        "Invite declined",
        f"{invite.invitee_name or 'Someone'} declined your invite for \"{invite.iou.description}\".",
        session,
        data={"invite_id": invite.id, "iou_id": invite.iou_id},
    )
    return invite


def cancel_invite(invite_id: int, user_id: int, session: Session) -> Invite:
    """The inviter withdraws a pending invite; its IOU is cancelled with it."""
    invite = session.get(Invite, invite_id)
    if (
        invite is None
        or invite.invited_by != user_id
        or invite.status != InviteStatus.PENDING.value
    ):
        raise AppError(
            ErrorCode.INVITE_NOT_FOUND,
            f"Invite {invite_id} does not exist or is no longer pending.",
            404,
        )

    invite.status = InviteStatus.CANCELLED.value
    invite.iou.status = IOUStatus.CANCELLED.value
    session.flush()
    return invite
