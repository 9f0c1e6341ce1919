"""
services/auth_service.py — First-login provisioning of local user rows.

Identity is delegated: tokens are issued and verified against an external
provider (see middleware/auth_middleware.py). This service only maps a
verified identity to a row in `users`, creating one on first login.

Username derivation for new users:
  1. The local part of the token's email, lowercased and reduced to the
     username alphabet, else "user_<first 8 chars of the provider uid>".
  2. If that username is taken, "_<base36 millisecond timestamp>" is
     appended, trimming the base so the result stays within the limit.
The user can pick a proper username later via POST /profile/complete.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import re
import string
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.constants import USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from backend.app.models.base import utcnow
from backend.app.models.user import StreetCredVisibility, User

logger = logging.getLogger(__name__)

_BASE36_DIGITS = string.digits + string.ascii_lowercase


# ── Private helpers ────────────────────────────────────────────────────────

def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _clean_username(raw: str) -> str:
    """Lowercases and strips everything outside [a-z0-9_.]; collapses and trims periods."""
    cleaned = re.sub(r"[^a-z0-9_.]", "", raw.lower())
    cleaned = re.sub(r"\.{2,}", ".", cleaned)
    return cleaned[:USERNAME_MAX_LENGTH].strip(".")


def derive_base_username(email: str | None, auth_uid: str) -> str:
    base = _clean_username(email.split("@")[0]) if email else ""
    if not base:
        base = _clean_username(f"user_{auth_uid[:8]}")
    if len(base) < USERNAME_MIN_LENGTH:
        base = base.ljust(USERNAME_MIN_LENGTH, "_")
    return base


def _username_taken(username: str, session: Session) -> bool:
    return session.execute(
        select(User.id).where(User.username == username)
    ).scalar_one_or_none() is not None


def _unique_username(base: str, session: Session, now: datetime) -> str:
    if not _username_taken(base, session):
        return base

    suffix = "_" + _to_base36(int(now.timestamp() * 1000))
    return base[:USERNAME_MAX_LENGTH - len(suffix)].rstrip(".") + suffix


# ── Public service functions ───────────────────────────────────────────────

def login_or_provision(claims: dict, session: Session, now: datetime | None = None) -> tuple[User, bool]:
    """
    Returns the local user for verified identity `claims`, creating it on
    first login.

    Args:
        claims: Verified token claims. `sub` is guaranteed present by the
                middleware; `email` and `picture` are optional.

    Returns:
        (user, created) — created is True when a new row was inserted.
    """
    auth_uid: str = claims["sub"]

    user = session.execute(
        select(User).where(User.auth_uid == auth_uid)
    ).scalar_one_or_none()
    if user is not None:
        return user, False

    email = claims.get("email") or None
    username = _unique_username(
        derive_base_username(email, auth_uid),
        session,
        now or utcnow(),
    )

    user = User(
        auth_uid=auth_uid,
        username=username,
        email=email,
        profile_pic_url=claims.get("picture") or None,
        street_cred_visibility=StreetCredVisibility.FRIENDS_ONLY.value,
    )
    session.add(user)
    session.flush()

    logger.info("Provisioned user %s with username %r", user.id, username)
    return user, True
