"""
services/user_service.py — Finding other users.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from backend.app.constants import DEFAULT_SEARCH_LIMIT
from backend.app.models.user import User
from backend.app.services.blocking_service import blocked_either_way_ids


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_users(
        query: str,
        caller_id: int,
        session: Session,
        limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[User]:
    """
    Case-insensitive substring match on username, email or first name.

    Excludes the caller, users who opted out of search and anyone blocked
    in either direction.
    """
    pattern = f"%{_escape_like(query.strip().lower())}%"

    stmt = (
        select(User)
        .where(
            or_(
                func.lower(User.username).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
                func.lower(User.first_name).like(pattern, escape="\\"),
            ),
            User.id != caller_id,
            User.hide_from_search.is_(False),
        )
        .order_by(User.username)
        .limit(limit)
    )

    excluded = blocked_either_way_ids(caller_id, session)
    if excluded:
        stmt = stmt.where(User.id.not_in(excluded))

    return list(session.execute(stmt).scalars().all())
