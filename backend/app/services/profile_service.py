"""
services/profile_service.py — Profiles, usernames, settings and street cred.

Validation responsibility:
  - schemas/profile_schema.py: username / first-name format, setting enums.
  - This file: username availability, suggestions, the username change
    cooldown, and who may see a profile or street cred.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.constants import MAX_USERNAME_SUGGESTIONS, USERNAME_CHANGE_COOLDOWN_DAYS
from backend.app.errors import AppError, ErrorCode
from backend.app.models.base import utcnow
from backend.app.models.iou import IOU, IOUStatus
from backend.app.models.user import ProfileVisibility, StreetCredVisibility, User
from backend.app.serializers import public_profile
from backend.app.services.friend_service import are_friends
from backend.app.utils.validation import normalize_username, username_error

# Statuses that count towards street cred. Pending and invite IOUs were never
# agreed to, so they say nothing about the debtor.
STREET_CRED_STATUSES = (
    IOUStatus.ACTIVE.value,
    IOUStatus.PAYMENT_PENDING.value,
    IOUStatus.PAID.value,
    IOUStatus.CANCELLED.value,
)


# ── Lookups ────────────────────────────────────────────────────────────────

def get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def is_username_taken(username: str, session: Session, exclude_user_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return session.execute(stmt).first() is not None


def suggest_usernames(base: str, session: Session, rng: random.Random | None = None) -> list[str]:
    """
    Up to MAX_USERNAME_SUGGESTIONS free, well-formed variations of `base`,
    tried in a fixed order with two random numeric suffixes mixed in.
    """
    rng = rng or random
    candidates = [
        f"{base}1",
        f"{base}2",
        f"{base}_1",
        f"{base}_2",
        f"{base}{rng.randrange(100)}",
        f"{base}{rng.randrange(1000)}",
        f"{base}.1",
        f"{base}.2",
    ]

    suggestions: list[str] = []
    for candidate in candidates:
        if len(suggestions) >= MAX_USERNAME_SUGGESTIONS:
            break
        if candidate in suggestions or username_error(candidate):
            continue
        if not is_username_taken(candidate, session):
            suggestions.append(candidate)
    return suggestions


def _username_taken_error(username: str, session: Session) -> AppError:
    return AppError(
        ErrorCode.USERNAME_TAKEN,
        "This username is already taken.",
        409,
        field="username",
        details={"suggestions": suggest_usernames(username, session)},
    )


# ── Username availability ──────────────────────────────────────────────────

def check_username(raw_username: str, caller_id: int, session: Session) -> dict:
    """
    Reports whether the caller could take `raw_username`. Never raises for
    bad input; the problem is returned in the payload for inline form hints.
    """
    username = normalize_username(raw_username)

    problem = username_error(username)
    if problem:
        return {"available": False, "error": problem, "suggestions": []}

    if is_username_taken(username, session, exclude_user_id=caller_id):
        return {
            "available": False,
            "error": "Username is already taken",
            "suggestions": suggest_usernames(username, session),
        }

    return {"available": True}


# ── Profile writes ─────────────────────────────────────────────────────────

def complete_profile(user_id: int, data: dict, session: Session) -> User:
    """
    First-time onboarding: sets first name and username.

    Args:
        data: Validated dict from CompleteProfileSchema (first_name already
              capitalised, username already normalised).
    """
    user = get_user_or_404(user_id, session)
    username = data["username"]

    if is_username_taken(username, session, exclude_user_id=user_id):
        raise _username_taken_error(username, session)

    user.first_name = data["first_name"]
    user.username = username
    user.profile_complete = True
    user.setup_complete = True
    user.username_changed_at = utcnow()
    session.flush()
    return user


def next_username_change_at(user: User) -> datetime | None:
    if user.username_changed_at is None:
        return None
    return user.username_changed_at + timedelta(days=USERNAME_CHANGE_COOLDOWN_DAYS)


def update_settings(user_id: int, data: dict, session: Session, now: datetime | None = None) -> User:
    """
    Applies a partial settings update.

    Args:
        data: Validated dict from UpdateSettingsSchema. Only keys the client
              sent are present.

    Raises:
      NO_UPDATES            (400) — nothing to update
      USERNAME_CHANGE_LIMIT (400) — username changed within the cooldown
      USERNAME_TAKEN        (409) — with suggestions
    """
    if not data:
        raise AppError(ErrorCode.NO_UPDATES, "No valid updates provided.", 400)

    user = get_user_or_404(user_id, session)
    now = now or utcnow()
    updates = dict(data)

    username = updates.pop("username", None)
    if username is not None:
        if username != user.username:
            allowed_at = next_username_change_at(user)
            if allowed_at is not None and now < allowed_at:
                raise AppError(
                    ErrorCode.USERNAME_CHANGE_LIMIT,
                    f"You can change your username again on {allowed_at.date().isoformat()}.",
                    400,
                    field="username",
                    details={"next_change_at": allowed_at.isoformat()},
                )
            if is_username_taken(username, session, exclude_user_id=user_id):
                raise _username_taken_error(username, session)

            user.username = username
            user.username_changed_at = now
        user.setup_complete = True

    for key, value in updates.items():
        setattr(user, key, value)

    session.flush()
    return user


# ── Reads with visibility rules ────────────────────────────────────────────

def get_public_profile(target_id: int, caller_id: int, session: Session) -> dict:
    """
    Public fields of another user. A friends-only profile viewed by a
    non-friend is reduced to id and username with `restricted: true`.
    """
    user = get_user_or_404(target_id, session)

    if (
        user.profile_visibility == ProfileVisibility.FRIENDS_ONLY.value
        and target_id != caller_id
        and not are_friends(caller_id, target_id, session)
    ):
        return {"id": user.id, "username": user.username, "restricted": True}

    return public_profile(user)


def get_street_cred(target_id: int, caller_id: int, session: Session) -> dict | None:
    """
    {debts_paid, total_debts, outstanding_debts} for `target_id` as debtor,
    or None when the target's street_cred_visibility hides it from the caller.
    """
    user = get_user_or_404(target_id, session)

    if target_id != caller_id:
        if user.street_cred_visibility == StreetCredVisibility.PRIVATE.value:
            return None
        if (
            user.street_cred_visibility == StreetCredVisibility.FRIENDS_ONLY.value
            and not are_friends(caller_id, target_id, session)
        ):
            return None

    counts = dict(
        session.execute(
            select(IOU.status, func.count(IOU.id))
            .where(IOU.debtor_id == target_id, IOU.status.in_(STREET_CRED_STATUSES))
            .group_by(IOU.status)
        ).all()
    )

    return {
        "debts_paid": counts.get(IOUStatus.PAID.value, 0),
        "total_debts": sum(counts.values()),
        "outstanding_debts": (
            counts.get(IOUStatus.ACTIVE.value, 0)
            + counts.get(IOUStatus.PAYMENT_PENDING.value, 0)
        ),
    }
