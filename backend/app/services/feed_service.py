"""
services/feed_service.py — Activity feed of public IOUs and reactions.

An IOU appears in a user's feed when it is public, active or paid, and
involves the user or one of their friends. It is hidden when either party
has turned their feed off or is blocked (either way) by the viewer.
Reactions need a public IOU involving the reactor or a friend, with no
block either way between the reactor and its parties.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, aliased

from backend.app.constants import DEFAULT_FEED_LIMIT
from backend.app.errors import AppError, ErrorCode
from backend.app.models.feed_reaction import FeedReaction, ReactionType
from backend.app.models.iou import IOU, IOUStatus, Visibility
from backend.app.models.user import User
from backend.app.serializers import serialize_iou
from backend.app.services.blocking_service import blocked_either_way_ids
from backend.app.services.friend_service import friend_ids

FEED_STATUSES = (IOUStatus.ACTIVE.value, IOUStatus.PAID.value)


def _reaction_summary(iou_ids: list[int], user_id: int, session: Session) -> tuple[dict, dict]:
    """Returns ({iou_id: {"up": n, "down": n}}, {iou_id: caller's reaction})."""
    counts: dict[int, dict[str, int]] = {
        iou_id: {ReactionType.UP.value: 0, ReactionType.DOWN.value: 0} for iou_id in iou_ids
    }
    mine: dict[int, str] = {}
    if not iou_ids:
        return counts, mine

    rows = session.execute(
        select(FeedReaction.iou_id, FeedReaction.reaction_type, func.count(FeedReaction.id))
        .where(FeedReaction.iou_id.in_(iou_ids))
        .group_by(FeedReaction.iou_id, FeedReaction.reaction_type)
    ).all()
    for iou_id, reaction_type, count in rows:
        counts[iou_id][reaction_type] = count

    own_rows = session.execute(
        select(FeedReaction.iou_id, FeedReaction.reaction_type).where(
            FeedReaction.user_id == user_id,
            FeedReaction.iou_id.in_(iou_ids),
        )
    ).all()
    mine = {iou_id: reaction_type for iou_id, reaction_type in own_rows}
    return counts, mine


def get_feed(user_id: int, session: Session, limit: int = DEFAULT_FEED_LIMIT) -> list[dict]:
    """
    Newest-first feed items for `user_id`, each an IOU dict plus
    `reactions` and `user_reaction`.

    Raises:
        FEED_DISABLED (403) — the caller has turned their own feed off.
    """
    viewer = session.get(User, user_id)
    if viewer is None or not viewer.feed_visible:
        raise AppError(
            ErrorCode.FEED_DISABLED,
            "Feed is disabled for your account.",
            403,
        )

    relevant_ids = friend_ids(user_id, session) | {user_id}
    blocked_ids = blocked_either_way_ids(user_id, session)

    debtor = aliased(User)
    creditor = aliased(User)
    stmt = (
        select(IOU)
        .join(debtor, IOU.debtor_id == debtor.id)
        .join(creditor, IOU.creditor_id == creditor.id)
        .where(
            IOU.visibility == Visibility.PUBLIC.value,
            IOU.status.in_(FEED_STATUSES),
            or_(IOU.debtor_id.in_(relevant_ids), IOU.creditor_id.in_(relevant_ids)),
            debtor.feed_visible.is_(True),
            creditor.feed_visible.is_(True),
        )
        .order_by(IOU.created_at.desc(), IOU.id.desc())
        .limit(limit)
    )
    if blocked_ids:
        stmt = stmt.where(
            IOU.debtor_id.not_in(blocked_ids),
            IOU.creditor_id.not_in(blocked_ids),
        )

    ious = list(session.execute(stmt).scalars().all())
    counts, mine = _reaction_summary([iou.id for iou in ious], user_id, session)

    items = []
    for iou in ious:
        item = serialize_iou(iou, include_payments=False)
        item["reactions"] = counts[iou.id]
        item["user_reaction"] = mine.get(iou.id)
        items.append(item)
    return items


def _get_reactable_iou_or_404(iou_id: int, user_id: int, session: Session) -> IOU:
    """
    A public IOU the caller could see in their feed: it involves the caller
    or a friend, and neither party is blocked either way with the caller.
    """
    iou = session.get(IOU, iou_id)
    if iou is not None and iou.visibility == Visibility.PUBLIC.value:
        parties = {iou.debtor_id, iou.creditor_id} - {None}
        relevant_ids = friend_ids(user_id, session) | {user_id}
        if parties & relevant_ids and not parties & blocked_either_way_ids(user_id, session):
            return iou

    raise AppError(
        ErrorCode.IOU_NOT_FOUND,
        f"IOU {iou_id} does not exist or is not in your feed.",
        404,
    )


def react(iou_id: int, user_id: int, reaction_type: str, session: Session) -> FeedReaction:
    """Adds the caller's reaction, or replaces the one they already left."""
    _get_reactable_iou_or_404(iou_id, user_id, session)

    reaction = session.execute(
        select(FeedReaction).where(
            FeedReaction.user_id == user_id,
            FeedReaction.iou_id == iou_id,
        )
    ).scalar_one_or_none()

    if reaction is None:
        reaction = FeedReaction(user_id=user_id, iou_id=iou_id, reaction_type=reaction_type)
        session.add(reaction)
    else:
        reaction.reaction_type = reaction_type

    session.flush()
    return reaction


def remove_reaction(iou_id: int, user_id: int, session: Session) -> bool:
    """Returns False when there was nothing to remove."""
    reaction = session.execute(
        select(FeedReaction).where(
            FeedReaction.user_id == user_id,
            FeedReaction.iou_id == iou_id,
        )
    ).scalar_one_or_none()
    if reaction is None:
        return False
    session.delete(reaction)
    session.flush()
    return True
