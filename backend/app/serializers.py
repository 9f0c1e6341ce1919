"""
serializers.py — ORM object → plain dict conversion for JSON output.

Several blueprints embed the same shapes (an IOU inside a feed item, a user
inside a friendship), so the helpers live here rather than in each route
file. Amounts are emitted as strings, never JS numbers.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from backend.app.models.blocked_user import BlockedUser
from backend.app.models.friendship import Friendship
from backend.app.models.invite import Invite
from backend.app.models.iou import IOU
from backend.app.models.notification import Notification
from backend.app.models.payment import Payment
from backend.app.models.recurring_iou import RecurringIOU
from backend.app.models.user import User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _amount(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


# ── Users ──────────────────────────────────────────────────────────────────

def user_summary(user: User | None) -> dict | None:
    """The fields any signed-in user may see about another user."""
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "profile_pic_url": user.profile_pic_url,
        "venmo_handle": user.venmo_handle,
    }


def public_profile(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "profile_pic_url": user.profile_pic_url,
        "street_cred_visibility": user.street_cred_visibility,
        "created_at": _iso(user.created_at),
    }


def private_profile(user: User) -> dict:
    """Everything stored about the caller. Only ever returned to the user themselves."""
    return {
        "id": user.id,
        "auth_uid": user.auth_uid,
        "username": user.username,
        "first_name": user.first_name,
        "email": user.email,
        "phone": user.phone,
        "profile_pic_url": user.profile_pic_url,
        "venmo_handle": user.venmo_handle,
        "street_cred_visibility": user.street_cred_visibility,
        "feed_visible": user.feed_visible,
        "friend_request_setting": user.friend_request_setting,
        "profile_visibility": user.profile_visibility,
        "hide_from_search": user.hide_from_search,
        "default_iou_visibility": user.default_iou_visibility,
        "default_currency": user.default_currency,
        "date_format": user.date_format,
        "time_format": user.time_format,
        "setup_complete": user.setup_complete,
        "profile_complete": user.profile_complete,
        "username_changed_at": _iso(user.username_changed_at),
        "created_at": _iso(user.created_at),
    }


# ── Friendships and blocks ─────────────────────────────────────────────────

def serialize_friendship(friendship: Friendship) -> dict:
    return {
        "id": friendship.id,
        "requester_id": friendship.requester_id,
        "addressee_id": friendship.addressee_id,
        "status": friendship.status,
        "created_at": _iso(friendship.created_at),
        "updated_at": _iso(friendship.updated_at),
        "requester": user_summary(friendship.requester),
        "addressee": user_summary(friendship.addressee),
    }


def serialize_block(block: BlockedUser) -> dict:
    return {
        "id": block.id,
        "blocker_id": block.blocker_id,
        "blocked_id": block.blocked_id,
        "created_at": _iso(block.created_at),
        "blocked_user": user_summary(block.blocked_user),
    }


# ── IOUs and payments ──────────────────────────────────────────────────────

def amount_paid(iou: IOU) -> Decimal:
    """Sum of the numeric payment amounts; descriptive payments count as zero."""
    return sum(
        (payment.amount for payment in iou.payments if payment.amount is not None),
        Decimal("0.00"),
    )


def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "iou_id": payment.iou_id,
        "amount": _amount(payment.amount),
        "description": payment.description,
        "paid_at": _iso(payment.paid_at),
        "created_by": payment.created_by,
        "created_at": _iso(payment.created_at),
    }


def serialize_iou(iou: IOU, include_payments: bool = True) -> dict:
    data = {
        "id": iou.id,
        "debtor_id": iou.debtor_id,
        "creditor_id": iou.creditor_id,
        "created_by": iou.created_by,
        "description": iou.description,
        "amount": _amount(iou.amount),
        "currency": iou.currency,
        "status": iou.status,
        "visibility": iou.visibility,
        "due_date": _iso(iou.due_date),
        "notes": iou.notes,
        "created_at": _iso(iou.created_at),
        "paid_at": _iso(iou.paid_at),
        "debtor": user_summary(iou.debtor),
        "creditor": user_summary(iou.creditor),
    }
    if include_payments:
        data["payments"] = [serialize_payment(p) for p in iou.payments]
        data["amount_paid"] = _amount(amount_paid(iou))
    return data


def serialize_recurring(recurring: RecurringIOU) -> dict:
    return {
        "id": recurring.id,
        "debtor_id": recurring.debtor_id,
        "creditor_id": recurring.creditor_id,
        "created_by": recurring.created_by,
        "description": recurring.description,
        "amount": _amount(recurring.amount),
        "currency": recurring.currency,
        "visibility": recurring.visibility,
        "notes": recurring.notes,
        "frequency": recurring.frequency,
        "day_of_week": recurring.day_of_week,
        "day_of_month": recurring.day_of_month,
        "is_active": recurring.is_active,
        "last_generated_at": _iso(recurring.last_generated_at),
        "next_due_at": _iso(recurring.next_due_at),
        "created_at": _iso(recurring.created_at),
        "updated_at": _iso(recurring.updated_at),
        "debtor": user_summary(recurring.debtor),
        "creditor": user_summary(recurring.creditor),
    }


# ── Invites and notifications ──────────────────────────────────────────────

def serialize_invite(invite: Invite, include_iou: bool = False) -> dict:
    data = {
        "id": invite.id,
        "token": invite.token,
        "iou_id": invite.iou_id,
        "invited_by": invite.invited_by,
        "invitee_name": invite.invitee_name,
        "invitee_phone": invite.invitee_phone,
        "invitee_email": invite.invitee_email,
        "status": invite.status,
        "claimed_by": invite.claimed_by,
        "expires_at": _iso(invite.expires_at),
        "created_at": _iso(invite.created_at),
    }
    if include_iou:
        data["iou"] = serialize_iou(invite.iou, include_payments=False)
    return data


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "read": notification.read,
        "created_at": _iso(notification.created_at),
    }
