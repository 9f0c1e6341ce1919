"""
services/friend_service.py — Friendships and friend requests.

A friendship row exists once per pair regardless of who asked. Every
lookup between two users goes through pair_clause() so both orders are
checked.

Authorization rules:
  - Accepting / declining a request: the addressee only
  - Removing a friendship: either party

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.friendship import Friendship, FriendshipStatus
from backend.app.models.notification import NotificationType
from backend.app.models.user import FriendRequestSetting, User
from backend.app.services import notification_service


# ── Query helpers (shared with other services) ─────────────────────────────

def pair_clause(user_a: int, user_b: int):
    """WHERE clause matching the friendship row between two users in either direction."""
    return or_(
        and_(Friendship.requester_id == user_a, Friendship.addressee_id == user_b),
        and_(Friendship.requester_id == user_b, Friendship.addressee_id == user_a),
    )


def find_friendship(user_a: int, user_b: int, session: Session) -> Friendship | None:
    return session.execute(
        select(Friendship).where(pair_clause(user_a, user_b))
    ).scalar_one_or_none()


def are_friends(user_a: int, user_b: int, session: Session) -> bool:
    friendship = find_friendship(user_a, user_b, session)
    return friendship is not None and friendship.status == FriendshipStatus.ACCEPTED.value


def friend_ids(user_id: int, session: Session) -> set[int]:
    """Ids of every user with an accepted friendship with `user_id`."""
    rows = session.execute(
        select(Friendship.requester_id, Friendship.addressee_id).where(
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
    ).all()
    return {
        addressee_id if requester_id == user_id else requester_id
        for requester_id, addressee_id in rows
    }


def has_mutual_friend(user_a: int, user_b: int, session: Session) -> bool:
    return bool(friend_ids(user_a, session) & friend_ids(user_b, session))


def _display_name(user: User) -> str:
    return user.first_name or user.username


# ── Listing ────────────────────────────────────────────────────────────────

def list_friends(user_id: int, session: Session) -> list[Friendship]:
    stmt = (
        select(Friendship)
        .where(
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
            Friendship.status == FriendshipStatus.ACCEPTED.value,
        )
        .order_by(Friendship.updated_at.desc(), Friendship.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


def list_received_requests(user_id: int, session: Session) -> list[Friendship]:
    stmt = (
        select(Friendship)
        .where(
            Friendship.addressee_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.created_at.desc(), Friendship.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


def list_sent_requests(user_id: int, session: Session) -> list[Friendship]:
    stmt = (
        select(Friendship)
        .where(
            Friendship.requester_id == user_id,
            Friendship.status == FriendshipStatus.PENDING.value,
        )
        .order_by(Friendship.created_at.desc(), Friendship.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


def friendship_status(caller_id: int, other_id: int, session: Session) -> dict:
    """
    Relationship between the caller and another user, from the caller's side.

    Returns {"status": none | friends | request_sent | request_received,
             "friendship_id": int | None}. Declined requests read as "none".
    """
    friendship = find_friendship(caller_id, other_id, session)

    if friendship is None or friendship.status == FriendshipStatus.DECLINED.value:
        return {"status": "none", "friendship_id": None}

    if friendship.status == FriendshipStatus.ACCEPTED.value:
        status = "friends"
    elif friendship.requester_id == caller_id:
        status = "request_sent"
    else:
        status = "request_received"

    return {"status": status, "friendship_id": friendship.id}


# ── Requests ───────────────────────────────────────────────────────────────

def send_request(requester_id: int, addressee_id: int, session: Session) -> Friendship:
    """
    Sends a friend request from `requester_id` to `addressee_id`.

    Raises:
      SELF_FRIENDSHIP          (422)
      USER_NOT_FOUND           (404)
      BLOCKED                  (403) — a block exists in either direction
      FRIEND_REQUESTS_DISABLED (403) — addressee accepts no requests, or only
                                       from friends of friends and there is
                                       no mutual friend
      ALREADY_EXISTS           (409) — pending or accepted friendship exists

    A previously declined friendship is re-opened as a new pending request
    from the caller instead of inserting a second row for the pair.
    """
    from backend.app.services.blocking_service import is_blocked_either_way  # local import to avoid circular dep

    if requester_id == addressee_id:
        raise AppError(
            ErrorCode.SELF_FRIENDSHIP,
            "You cannot send a friend request to yourself.",
            422,
            field="addressee_id",
        )

    requester = session.get(User, requester_id)
    addressee = session.get(User, addressee_id)
    if addressee is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {addressee_id} does not exist.",
            404,
            field="addressee_id",
        )

    if is_blocked_either_way(requester_id, addressee_id, session):
        raise AppError(
            ErrorCode.BLOCKED,
            "You cannot send a friend request to this user.",
            403,
        )

    if addressee.friend_request_setting == FriendRequestSetting.NO_ONE.value:
        raise AppError(
            ErrorCode.FRIEND_REQUESTS_DISABLED,
            "This user is not accepting friend requests.",
            403,
        )
    if (
        addressee.friend_request_setting == FriendRequestSetting.FRIENDS_OF_FRIENDS.value
        and not has_mutual_friend(requester_id, addressee_id, session)
    ):
        raise AppError(
            ErrorCode.FRIEND_REQUESTS_DISABLED,
            "This user only accepts friend requests from friends of friends.",
            403,
        )

    friendship = find_friendship(requester_id, addressee_id, session)
    if friendship is not None and friendship.status != FriendshipStatus.DECLINED.value:
        raise AppError(
            ErrorCode.ALREADY_EXISTS,
            "A friendship or pending request already exists with this user.",
            409,
        )

    if friendship is None:
        friendship = Friendship(requester_id=requester_id, addressee_id=addressee_id)
        session.add(friendship)
    else:
        friendship.requester_id = requester_id
        friendship.addressee_id = addressee_id
        friendship.status = FriendshipStatus.PENDING.value

    session.flush()

    notification_service.notify(
        addressee_id,
        NotificationType.FRIEND_REQUEST,
        "New friend request",
        f"{_display_name(requester)} sent you a friend request.",
        session,
        data={"friendship_id": friendship.id, "user_id": requester_id},
    )
    return friendship


def _get_pending_request_for_addressee(
        friendship_id: int,
        caller_id: int,
        session: Session,
) -> Friendship:
    """Requests addressed to someone else look the same as missing ones."""
    friendship = session.get(Friendship, friendship_id)
    if (
        friendship is None
        or friendship.addressee_id != caller_id
        or friendship.status != FriendshipStatus.PENDING.value
    ):
        raise AppError(
            ErrorCode.FRIEND_REQUEST_NOT_FOUND,
            f"Friend request {friendship_id} does not exist or was already answered.",
            404,
        )
    return friendship


def accept_request(friendship_id: int, caller_id: int, session: Session) -> Friendship:
    friendship = _get_pending_request_for_addressee(friendship_id, caller_id, session)
    friendship.status = FriendshipStatus.ACCEPTED.value
    session.flush()

    notification_service.notify(
        friendship.requester_id,
        NotificationType.FRIEND_ACCEPTED,
        "Friend request accepted",
        f"{_display_name(friendship.addressee)} accepted your friend request.",
        session,
        data={"friendship_id": friendship.id, "user_id": caller_id},
    )
    return friendship


def decline_request(friendship_id: int, caller_id: int, session: Session) -> Friendship:
    friendship = _get_pending_request_for_addressee(friendship_id, caller_id, session)
    friendship.status = FriendshipStatus.DECLINED.value
    session.flush()
    return friendship


def remove_friend(friendship_id: int, caller_id: int, session: Session) -> None:
    """Either party may end a friendship (or withdraw / discard a request)."""
    friendship = session.get(Friendship, friendship_id)
    if friendship is None or caller_id not in (friendship.requester_id, friendship.addressee_id):
        raise AppError(
            ErrorCode.FRIENDSHIP_NOT_FOUND,
            f"Friendship {friendship_id} does not exist.",
            404,
        )
    session.delete(friendship)
    session.flush()
