"""
services/recurring_service.py — Recurring IOU templates and their generation.

Scheduling rules (all dates in UTC, generated IOUs fall due at 12:00):
  weekly  : the next `day_of_week` (0=Sunday … 6=Saturday) strictly after today
  monthly : `day_of_month` of this month if strictly after today, otherwise
            of next month; clamped to the last day of short months

Generation is triggered over HTTP for the caller (POST /recurring/generate)
or for everyone from cron (`flask generate-recurring`). Each due template
yields one pending IOU and is re-scheduled; a template that fell several
periods behind yields a single IOU, not one per missed period. Templates
whose parties have since unfriended or blocked each other are skipped and
stay due.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's (or CLI command's) responsibility — only flush here.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode
from backend.app.models.base import utcnow
from backend.app.models.iou import IOU, IOUStatus
from backend.app.models.notification import NotificationType
from backend.app.models.recurring_iou import Frequency, RecurringIOU
from backend.app.models.user import User
from backend.app.services import notification_service
from backend.app.services.blocking_service import is_blocked_either_way
from backend.app.services.friend_service import are_friends

logger = logging.getLogger(__name__)

DUE_TIME = time(12, 0, tzinfo=timezone.utc)


# ── Scheduling ─────────────────────────────────────────────────────────────

def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def calculate_next_due_date(
        frequency: str,
        day_of_week: int | None = None,
        day_of_month: int | None = None,
        today: date | None = None,
) -> datetime:
    """
    Next occurrence strictly after `today` (defaults to the current UTC date).

    >>> calculate_next_due_date("weekly", day_of_week=1, today=date(2026, 10, 16))
    datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)
    """
    today = today or utcnow().date()

    if frequency == Frequency.WEEKLY.value:
        # date.weekday() is Monday=0; stored days are Sunday=0.
        current = (today.weekday() + 1) % 7
        days_until = (day_of_week - current) % 7 or 7
        due = today + timedelta(days=days_until)
    elif frequency == Frequency.MONTHLY.value:
        due = _clamped(today.year, today.month, day_of_month)
        if due <= today:
            year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
            due = _clamped(year, month, day_of_month)
    else:
        raise ValueError(f"Unknown frequency: {frequency!r}")

    return datetime.combine(due, DUE_TIME)


def _require_schedule(frequency: str, day_of_week: int | None, day_of_month: int | None) -> None:
    if frequency == Frequency.WEEKLY.value and day_of_week is None:
        raise AppError(
            ErrorCode.MISSING_FIELD,
            "day_of_week is required for weekly recurrence.",
            400,
            field="day_of_week",
        )
    if frequency == Frequency.MONTHLY.value and day_of_month is None:
        raise AppError(
            ErrorCode.MISSING_FIELD,
            "day_of_month is required for monthly recurrence.",
            400,
            field="day_of_month",
        )


# ── CRUD ───────────────────────────────────────────────────────────────────

def list_recurring(user_id: int, session: Session) -> list[RecurringIOU]:
    stmt = (
        select(RecurringIOU)
        .where(or_(RecurringIOU.debtor_id == user_id, RecurringIOU.creditor_id == user_id))
        .order_by(RecurringIOU.created_at.desc(), RecurringIOU.id.desc())
    )
    return list(session.execute(stmt).scalars().all())


def _get_own_recurring(recurring_id: int, user_id: int, session: Session) -> RecurringIOU:
    """Only the creator may change a template; anyone else sees a 404."""
    recurring = session.get(RecurringIOU, recurring_id)
    if recurring is None or recurring.created_by != user_id:
        raise AppError(
            ErrorCode.RECURRING_NOT_FOUND,
            f"Recurring IOU {recurring_id} does not exist.",
            404,
        )
    return recurring


def create_recurring(
        user_id: int,
        data: dict,
        session: Session,
        today: date | None = None,
) -> RecurringIOU:
    """
    Args:
        user_id: The authenticated caller; becomes the creator and whichever
                 party the body did not name.
        data:    Validated dict from CreateRecurringSchema.
    """
    if data.get("debtor_id") is not None:
        debtor_id, creditor_id = data["debtor_id"], user_id
    else:
        debtor_id, creditor_id = user_id, data["creditor_id"]

    other_id = debtor_id if creditor_id == user_id else creditor_id
    if other_id == user_id:
        raise AppError(
            ErrorCode.SELF_IOU,
            "You cannot create a recurring IOU with yourself.",
            422,
        )
    if session.get(User, other_id) is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {other_id} does not exist.",
            404,
        )
    if is_blocked_either_way(user_id, other_id, session):
        raise AppError(
            ErrorCode.BLOCKED,
            "You cannot create a recurring IOU with this user.",
            403,
        )
    if not are_friends(user_id, other_id, session):
        raise AppError(
            ErrorCode.NOT_FRIENDS,
            "You can only create recurring IOUs with friends.",
            400,
        )

    frequency = data["frequency"]
    day_of_week = data.get("day_of_week") if frequency == Frequency.WEEKLY.value else None
    day_of_month = data.get("day_of_month") if frequency == Frequency.MONTHLY.value else None
    _require_schedule(frequency, day_of_week, day_of_month)

    recurring = RecurringIOU(
        debtor_id=debtor_id,
        creditor_id=creditor_id,
        created_by=user_id,
        description=data["description"],
        amount=data.get("amount"),
        currency=data.get("currency"),
        visibility=data.get("visibility"),
        notes=data.get("notes"),
        frequency=frequency,
        day_of_week=day_of_week,
        day_of_month=day_of_month,
        next_due_at=calculate_next_due_date(frequency, day_of_week, day_of_month, today),
    )
    session.add(recurring)
    session.flush()
    return recurring


_SCHEDULE_FIELDS = ("frequency", "day_of_week", "day_of_month")


def update_recurring(
        recurring_id: int,
        user_id: int,
        data: dict,
        session: Session,
        today: date | None = None,
) -> RecurringIOU:
    """
    Partial update by the creator. Any change to the schedule recomputes
    next_due_at; the day field that does not match the frequency is cleared.
    """
    recurring = _get_own_recurring(recurring_id, user_id, session)

    if not data:
        raise AppError(ErrorCode.NO_UPDATES, "No valid updates provided.", 400)

    for key, value in data.items():
        if key not in _SCHEDULE_FIELDS:
            setattr(recurring, key, value)

    if any(key in data for key in _SCHEDULE_FIELDS):
        frequency = data.get("frequency", recurring.frequency)
        day_of_week = data.get("day_of_week", recurring.day_of_week)
        day_of_month = data.get("day_of_month", recurring.day_of_month)

        if frequency == Frequency.WEEKLY.value:
            day_of_month = None
        else:
            day_of_week = None
        _require_schedule(frequency, day_of_week, day_of_month)

        recurring.frequency = frequency
        recurring.day_of_week = day_of_week
        recurring.day_of_month = day_of_month
        recurring.next_due_at = calculate_next_due_date(frequency, day_of_week, day_of_month, today)

    session.flush()
    return recurring


def delete_recurring(recurring_id: int, user_id: int, session: Session) -> None:
    recurring = _get_own_recurring(recurring_id, user_id, session)
    session.delete(recurring)
    session.flush()


# ── Generation ─────────────────────────────────────────────────────────────

def _generate_one(recurring: RecurringIOU, now: datetime, session: Session) -> IOU:
    iou = IOU(
        debtor_id=recurring.debtor_id,
        creditor_id=recurring.creditor_id,
        created_by=recurring.created_by,
        description=recurring.description,
        amount=recurring.amount,
        currency=recurring.currency,
        visibility=recurring.visibility,
        notes=f"[Recurring] {recurring.notes}" if recurring.notes else "[Recurring IOU]",
        status=IOUStatus.PENDING.value,
    )
    session.add(iou)

    recurring.last_generated_at = now
    recurring.next_due_at = calculate_next_due_date(
        recurring.frequency,
        recurring.day_of_week,
        recurring.day_of_month,
        now.date(),
    )
    session.flush()

    other_id = recurring.creditor_id if recurring.created_by == recurring.debtor_id else recurring.debtor_id
    notification_service.notify(
        other_id,
        NotificationType.IOU_CREATED,
        "Recurring IOU",
        f"A recurring IOU for \"{recurring.description}\" is ready for you to accept.",
        session,
        data={"iou_id": iou.id, "recurring_id": recurring.id},
    )
    return iou


def _due_query(now: datetime):
    return (
        select(RecurringIOU)
        .where(RecurringIOU.is_active.is_(True), RecurringIOU.next_due_at <= now)
        .order_by(RecurringIOU.next_due_at, RecurringIOU.id)
    )


def _parties_connected(recurring: RecurringIOU, session: Session) -> bool:
    """The pair must still be friends, with no block either way."""
    debtor_id, creditor_id = recurring.debtor_id, recurring.creditor_id
    return (
        are_friends(debtor_id, creditor_id, session)
        and not is_blocked_either_way(debtor_id, creditor_id, session)
    )


def _generate_for(templates: list[RecurringIOU], now: datetime, session: Session) -> list[IOU]:
    generated = []
    for recurring in templates:
        if not _parties_connected(recurring, session):
            # Left due so generation resumes if the two reconnect.
            logger.info(
                "Skipped recurring IOU %s: users %s and %s are no longer friends or are blocked",
                recurring.id, recurring.debtor_id, recurring.creditor_id,
            )
            continue
        generated.append(_generate_one(recurring, now, session))
    return generated


def generate_due(user_id: int, session: Session, now: datetime | None = None) -> list[IOU]:
    """Generates IOUs for every due template involving `user_id`."""
    now = now or utcnow()
    stmt = _due_query(now).where(
        or_(RecurringIOU.debtor_id == user_id, RecurringIOU.creditor_id == user_id)
    )
    generated = _generate_for(session.execute(stmt).scalars().all(), now, session)

    if generated:
        logger.info("Generated %d recurring IOU(s) for user %s", len(generated), user_id)
    return generated


def generate_all_due(session: Session, now: datetime | None = None) -> list[IOU]:
    """Generates IOUs for every due template. Entry point for the cron command."""
    now = now or utcnow()
    generated = _generate_for(session.execute(_due_query(now)).scalars().all(), now, session)
    logger.info("Generated %d recurring IOU(s)", len(generated))
    return generated
