"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-16

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Enumerated columns (statuses, visibilities, settings) are VARCHAR with a
CHECK constraint rather than PostgreSQL enum types, so adding a value is a
constraint swap instead of an ALTER TYPE.

Creation order (FK dependencies):
  users → friendships, blocked_users, notifications
        → ious → payments, iou_invites, feed_reactions
        → recurring_ious

ON DELETE policies:
  Everything a user owns or takes part in is removed with the user (CASCADE),
  except payments.created_by (RESTRICT) and iou_invites.claimed_by (SET NULL).
  payments, iou_invites and feed_reactions are removed with their IOU.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def _user_fk(column: str, constraint: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        column,
        sa.Integer(),
        sa.ForeignKey("users.id", ondelete=ondelete, name=constraint),
        nullable=nullable,
    )


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────
    # auth_uid is the identity provider's subject; the only link to the
    # provider account.

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("auth_uid", sa.String(255), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("first_name", sa.String(20)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(20)),
        sa.Column("profile_pic_url", sa.String()),
        sa.Column("venmo_handle", sa.String(50)),
        sa.Column("street_cred_visibility", sa.String(20), nullable=False, server_default="friends_only"),
        sa.Column("feed_visible", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        sa.Column("friend_request_setting", sa.String(20), nullable=False, server_default="everyone"),
        sa.Column("profile_visibility", sa.String(20), nullable=False, server_default="everyone"),
        sa.Column("hide_from_search", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("default_iou_visibility", sa.String(20), nullable=False, server_default="private"),
        sa.Column("default_currency", sa.String(10), nullable=False, server_default="$"),
        sa.Column("date_format", sa.String(20), nullable=False, server_default="DD/MM/YYYY"),
        sa.Column("time_format", sa.String(10), nullable=False, server_default="12h"),
        sa.Column("setup_complete", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("profile_complete", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("username_changed_at", sa.DateTime(timezone=True)),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.CheckConstraint("LENGTH(TRIM(username)) > 0", name="ck_users_username_nonempty"),
        sa.CheckConstraint(
            "street_cred_visibility IN ('private', 'friends_only', 'public')",
            name="ck_users_street_cred_visibility",
        ),
        sa.CheckConstraint(
            "friend_request_setting IN ('everyone', 'friends_of_friends', 'no_one')",
            name="ck_users_friend_request_setting",
        ),
        sa.CheckConstraint(
            "profile_visibility IN ('everyone', 'friends_only')",
            name="ck_users_profile_visibility",
        ),
        sa.CheckConstraint(
            "default_iou_visibility IN ('private', 'public')",
            name="ck_users_default_iou_visibility",
        ),
    )
    op.create_index("ix_users_auth_uid", "users", ["auth_uid"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # ── friendships ────────────────────────────────────────────────────────
    # One row per pair; lookups check both directions.

    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("requester_id", "fk_friendships_requester"),
        _user_fk("addressee_id", "fk_friendships_addressee"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_friendships"),
        sa.UniqueConstraint("requester_id", "addressee_id", name="uq_friendships_requester_addressee"),
        sa.CheckConstraint("requester_id <> addressee_id", name="ck_friendships_no_self_friendship"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_friendships_status",
        ),
    )
    op.create_index("ix_friendships_requester_id", "friendships", ["requester_id"])
    op.create_index("ix_friendships_addressee_id", "friendships", ["addressee_id"])
    op.create_index("ix_friendships_status", "friendships", ["status"])

    # ── ious ───────────────────────────────────────────────────────────────
    # debtor_id / creditor_id are NULL only while an invite is outstanding.

    op.create_table(
        "ious",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("debtor_id", "fk_ious_debtor", nullable=True),
        _user_fk("creditor_id", "fk_ious_creditor", nullable=True),
        _user_fk("created_by", "fk_ious_created_by"),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2)),
        sa.Column("currency", sa.String(10)),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="private"),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text()),
        _created_at(),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.PrimaryKeyConstraint("id", name="pk_ious"),
        sa.CheckConstraint(
            "status IN ('invite_pending', 'pending', 'active', 'payment_pending', "
            "'paid', 'cancelled', 'expired')",
            name="ck_ious_status",
        ),
        sa.CheckConstraint("visibility IN ('private', 'public')", name="ck_ious_visibility"),
        sa.CheckConstraint("amount IS NULL OR amount >= 0", name="ck_ious_amount_non_negative"),
        sa.CheckConstraint(
            "debtor_id IS NULL OR creditor_id IS NULL OR debtor_id <> creditor_id",
            name="ck_ious_distinct_parties",
        ),
    )
    op.create_index("ix_ious_debtor_id", "ious", ["debtor_id"])
    op.create_index("ix_ious_creditor_id", "ious", ["creditor_id"])
    op.create_index("ix_ious_status", "ious", ["status"])
    op.create_index("ix_ious_due_date", "ious", ["due_date"])

    # ── payments ───────────────────────────────────────────────────────────

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "iou_id",
            sa.Integer(),
            sa.ForeignKey("ious.id", ondelete="CASCADE", name="fk_payments_iou"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        _user_fk("created_by", "fk_payments_created_by", ondelete="RESTRICT"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.CheckConstraint("amount IS NULL OR amount >= 0", name="ck_payments_amount_non_negative"),
    )
    op.create_index("ix_payments_iou_id", "payments", ["iou_id"])
    op.create_index("ix_payments_created_by", "payments", ["created_by"])

    # ── recurring_ious ─────────────────────────────────────────────────────

    op.create_table(
        "recurring_ious",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("debtor_id", "fk_recurring_ious_debtor"),
        _user_fk("creditor_id", "fk_recurring_ious_creditor"),
        _user_fk("created_by", "fk_recurring_ious_created_by"),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2)),
        sa.Column("currency", sa.String(10)),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="private"),
        sa.Column("notes", sa.Text()),
        sa.Column("frequency", sa.String(20), nullable=False),
        sa.Column("day_of_week", sa.Integer()),
        sa.Column("day_of_month", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        sa.Column("last_generated_at", sa.DateTime(timezone=True)),
        sa.Column("next_due_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_recurring_ious"),
        sa.CheckConstraint("frequency IN ('weekly', 'monthly')", name="ck_recurring_ious_frequency"),
        sa.CheckConstraint("visibility IN ('private', 'public')", name="ck_recurring_ious_visibility"),
        sa.CheckConstraint(
            "day_of_week IS NULL OR (day_of_week BETWEEN 0 AND 6)",
            name="ck_recurring_ious_day_of_week",
        ),
        sa.CheckConstraint(
            "day_of_month IS NULL OR (day_of_month BETWEEN 1 AND 31)",
            name="ck_recurring_ious_day_of_month",
        ),
        sa.CheckConstraint("debtor_id <> creditor_id", name="ck_recurring_ious_distinct_parties"),
    )
    op.create_index("ix_recurring_ious_debtor_id", "recurring_ious", ["debtor_id"])
    op.create_index("ix_recurring_ious_creditor_id", "recurring_ious", ["creditor_id"])
    # The generator scans due, active templates.
    op.create_index("idx_recurring_ious_next_due", "recurring_ious", ["next_due_at", "is_active"])

    # ── iou_invites ────────────────────────────────────────────────────────

    op.create_table(
        "iou_invites",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column(
            "iou_id",
            sa.Integer(),
            sa.ForeignKey("ious.id", ondelete="CASCADE", name="fk_iou_invites_iou"),
            nullable=False,
        ),
        _user_fk("invited_by", "fk_iou_invites_invited_by"),
        sa.Column("invitee_name", sa.String(100)),
        sa.Column("invitee_phone", sa.String(20)),
        sa.Column("invitee_email", sa.String(255)),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _user_fk("claimed_by", "fk_iou_invites_claimed_by", nullable=True, ondelete="SET NULL"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_iou_invites"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired', 'cancelled')",
            name="ck_iou_invites_status",
        ),
    )
    op.create_index("ix_iou_invites_token", "iou_invites", ["token"], unique=True)
    op.create_index("ix_iou_invites_invited_by", "iou_invites", ["invited_by"])

    # ── notifications ──────────────────────────────────────────────────────

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("user_id", "fk_notifications_user"),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # ── blocked_users ──────────────────────────────────────────────────────

    op.create_table(
        "blocked_users",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("blocker_id", "fk_blocked_users_blocker"),
        _user_fk("blocked_id", "fk_blocked_users_blocked"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_blocked_users"),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_blocked_users_pair"),
        sa.CheckConstraint("blocker_id <> blocked_id", name="ck_blocked_users_no_self_block"),
    )
    op.create_index("ix_blocked_users_blocker_id", "blocked_users", ["blocker_id"])
    op.create_index("ix_blocked_users_blocked_id", "blocked_users", ["blocked_id"])

    # ── feed_reactions ─────────────────────────────────────────────────────

    op.create_table(
        "feed_reactions",
        sa.Column("id", sa.Integer(), nullable=False),
        _user_fk("user_id", "fk_feed_reactions_user"),
        sa.Column(
            "iou_id",
            sa.Integer(),
            sa.ForeignKey("ious.id", ondelete="CASCADE", name="fk_feed_reactions_iou"),
            nullable=False,
        ),
        sa.Column("reaction_type", sa.String(10), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_feed_reactions"),
        sa.UniqueConstraint("user_id", "iou_id", name="uq_feed_reactions_user_iou"),
        sa.CheckConstraint("reaction_type IN ('up', 'down')", name="ck_feed_reactions_type"),
    )
    op.create_index("ix_feed_reactions_iou_id", "feed_reactions", ["iou_id"])


def downgrade() -> None:
    """Drops every table in reverse dependency order. Indexes go with their tables."""
    op.drop_table("feed_reactions")
    op.drop_table("blocked_users")
    op.drop_table("notifications")
    op.drop_table("iou_invites")
    op.drop_table("recurring_ious")
    op.drop_table("payments")
    op.drop_table("ious")
    op.drop_table("friendships")
    op.drop_table("users")
