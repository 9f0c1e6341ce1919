"""
tests/unit/conftest.py — Registers every model so transient instances can be built.

Unit tests construct ORM objects (IOU, Invite, Payment) without a database.
SQLAlchemy configures all mappers on first instantiation, so every model
module must be imported first; create_app() does the same for the app.
"""

from backend.app.models import (  # noqa: F401
    blocked_user,
    feed_reaction,
    friendship,
    invite,
    iou,
    notification,
    payment,
    recurring_iou,
    user,
)
