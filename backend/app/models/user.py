"""
models/user.py — User table definition.

A user row is provisioned the first time a verified identity token reaches
POST /auth/login. `auth_uid` is the identity provider's subject and is the
only link between the provider account and this row.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, String, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.base import UTCDateTime, enum_check, utcnow
from backend.app.models.iou import Visibility


class StreetCredVisibility(str, enum.Enum):
    PRIVATE      = "private"
    FRIENDS_ONLY = "friends_only"
    PUBLIC       = "public"


class FriendRequestSetting(str, enum.Enum):
    EVERYONE           = "everyone"
    FRIENDS_OF_FRIENDS = "friends_of_friends"
    NO_ONE             = "no_one"


class ProfileVisibility(str, enum.Enum):
    EVERYONE     = "everyone"
    FRIENDS_ONLY = "friends_only"


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(username)) > 0",
            name="ck_users_username_nonempty",
        ),
        enum_check(
            "street_cred_visibility",
            StreetCredVisibility,
            "ck_users_street_cred_visibility",
        ),
        enum_check(
            "friend_request_setting",
            FriendRequestSetting,
            "ck_users_friend_request_setting",
        ),
        enum_check(
            "profile_visibility",
            ProfileVisibility,
            "ck_users_profile_visibility",
        ),
        enum_check(
            "default_iou_visibility",
            Visibility,
            "ck_users_default_iou_visibility",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    auth_uid: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )

    first_name: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20))
    profile_pic_url: Mapped[str | None] = mapped_column(String)
    venmo_handle: Mapped[str | None] = mapped_column(String(50))

    # ── Privacy settings ───────────────────────────────────────────────────
    street_cred_visibility: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StreetCredVisibility.FRIENDS_ONLY.value,
        server_default=StreetCredVisibility.FRIENDS_ONLY.value,
    )
    feed_visible: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
    friend_request_setting: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FriendRequestSetting.EVERYONE.value,
        server_default=FriendRequestSetting.EVERYONE.value,
    )
    profile_visibility: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProfileVisibility.EVERYONE.value,
        server_default=ProfileVisibility.EVERYONE.value,
    )
    hide_from_search: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    # ── Display preferences ────────────────────────────────────────────────
    default_iou_visibility: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Visibility.PRIVATE.value,
        server_default=Visibility.PRIVATE.value,
    )
    default_currency: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="$",
        server_default="$",
    )
    date_format: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="DD/MM/YYYY",
        server_default="DD/MM/YYYY",
    )
    time_format: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="12h",
        server_default="12h",
    )

    # ── Onboarding ─────────────────────────────────────────────────────────
    setup_complete: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    profile_complete: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    # Drives the username change cooldown.
    username_changed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} username={self.username!r}>"
