"""
services/blocking_service.py — Blocking and unblocking users.

A block is stored one way (blocker → blocked) but checked both ways by
search, friend requests, IOU creation and the feed. Blocking someone also
ends any friendship or pending request between the two.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.blocked_user import BlockedUser
from backend.app.models.friendship import Friendship
from backend.app.models.user import User
from backend.app.services.friend_service import pair_clause

logger = logging.getLogger(__name__)


def is_blocked_either_way(user_a: int, user_b: int, session: Session) -> bool:
    block_id = session.execute(
        select(BlockedUser.id).where(
            or_(
                and_(BlockedUser.blocker_id == user_a, BlockedUser.blocked_id == user_b),
                and_(BlockedUser.blocker_id == user_b, BlockedUser.blocked_id == user_a),
            )
        ).limit(1)
    ).scalar_one_or_none()
    return block_id is not None


def blocked_either_way_ids(user_id: int, session: Session) -> set[int]:
    """Ids of users this user has blocked, plus users who have blocked them."""
    rows = session.execute(
        select(BlockedUser.blocker_id, BlockedUser.blocked_id).where(
            or_(BlockedUser.blocker_id == user_id, BlockedUser.blocked_id == user_id)
        )
    ).all()
    return {
        blocked_id if blocker_id == user_id else blocker_id
        for blocker_id, blocked_id in rows
    }


def list_blocked(user_id: int, session: Session) -> list[BlockedUser]:
    stmt = (
        select(BlockedUser)
        .where(BlockedUser.blocker_id == user_id)
        .order_by(BlockedUser.created_at.desc(), BlockedUser.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


def has_blocked(blocker_id: int, blocked_id: int, session: Session) -> bool:
    """True only when `blocker_id` is the one who blocked `blocked_id`."""
    block_id = session.execute(
        select(BlockedUser.id).where(
            BlockedUser.blocker_id == blocker_id,
            BlockedUser.blocked_id == blocked_id,
        )
    ).scalar_one_or_none()
    return block_id is not None


def block_user(blocker_id: int, blocked_id: int, session: Session) -> BlockedUser:
    """
    Blocks `blocked_id`.

    Raises:
      SELF_BLOCK      (400) — blocker_id == blocked_id
      USER_NOT_FOUND  (404) — target does not exist
      ALREADY_BLOCKED (409) — the caller already blocked the target
    """
    if blocker_id == blocked_id:
        raise AppError(ErrorCode.SELF_BLOCK, "You cannot block yourself.", 400)

    if session.get(User, blocked_id) is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {blocked_id} does not exist.",
            404,
        )

    if has_blocked(blocker_id, blocked_id, session):
        raise AppError(
            ErrorCode.ALREADY_BLOCKED,
            "You have already blocked this user.",
            409,
        )

    session.execute(delete(Friendship).where(pair_clause(blocker_id, blocked_id)))

    block = BlockedUser(blocker_id=blocker_id, blocked_id=blocked_id)
    session.add(block)
    session.flush()

    logger.info("User %s blocked user %s", blocker_id, blocked_id)
    return block


def unblock_user(blocker_id: int, blocked_id: int, session: Session) -> None:
    block = session.execute(
        select(BlockedUser).where(
            BlockedUser.blocker_id == blocker_id,
            BlockedUser.blocked_id == blocked_id,
        )
    ).scalar_one_or_none()

    if block is None:
        raise AppError(
            ErrorCode.BLOCK_NOT_FOUND,
            "You have not blocked this user.",
            404,
        )

    session.delete(block)
    session.flush()
