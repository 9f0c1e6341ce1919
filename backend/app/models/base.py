"""
models/base.py — Column helpers shared by the table definitions.

No business logic. No imports from services or routes.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Timezone-aware current time in UTC. Used as the Python-side column default."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attaches UTC to naive datetimes; converts aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime(timezone=True) that always hands back aware UTC datetimes.

    PostgreSQL already round-trips the offset. SQLite stores the value as
    text without one, so results are re-tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def enum_check(column: str, enum_cls: type[enum.Enum], name: str) -> CheckConstraint:
    """CHECK(column IN (...)) built from an enum's values."""
    allowed = ", ".join(f"'{value}'" for value in enum_values(enum_cls))
    return CheckConstraint(f"{column} IN ({allowed})", name=name)
