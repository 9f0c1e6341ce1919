"""
schemas/common.py — Field helpers shared by the request schemas.

IMPORTANT: All schemas inherit from marshmallow.Schema directly.
           Do NOT use ma.Schema — it requires an active Flask app context
           and breaks unit tests. See extensions.py.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load

from backend.app.constants import MAX_AMOUNT
from backend.app.errors import ErrorCode
from backend.app.models.base import as_utc


class RequestSchema(Schema):
    """
    Base for every request schema.

    Unknown keys are dropped rather than rejected; the client sends whole
    form objects. Blank strings are treated as "not provided" so optional
    fields cleared in a form arrive as None.
    """

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def blank_strings_to_none(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        return {
            key: (None if isinstance(value, str) and not value.strip() else value)
            for key, value in data.items()
        }


def validate_amount(value: Decimal | None) -> None:
    """
    Amounts are optional; when given they must lie in [0, MAX_AMOUNT] with
    at most 2 decimal places. Extra precision is rejected, never rounded.
    """
    if value is None:
        return
    if value < Decimal("0") or value > MAX_AMOUNT:
        raise ValidationError(ErrorCode.INVALID_AMOUNT)
    # Decimal("10.123").as_tuple().exponent == -3
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def amount_field(**kwargs) -> fields.Decimal:
    """
    Optional amount. Create schemas default it to None; update schemas pass
    load_default=missing so an absent key stays absent.
    """
    kwargs.setdefault("load_default", None)
    return fields.Decimal(
        allow_none=True,
        validate=validate_amount,
        error_messages={"invalid": ErrorCode.INVALID_AMOUNT},
        **kwargs,
    )


class UTCDateTimeField(fields.Field):
    """
    Accepts an ISO-8601 date or datetime ("2026-11-01", "2026-11-01T18:00Z")
    and returns an aware UTC datetime. Naive input is taken as UTC.
    """

    default_error_messages = {"invalid": "Not a valid date or datetime."}

    def _serialize(self, value, attr, obj, **kwargs):
        return value.isoformat() if value is not None else None

    def _deserialize(self, value, attr, data, **kwargs):
        if not isinstance(value, str):
            raise self.make_error("invalid")
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as error:
            raise self.make_error("invalid") from error
        return as_utc(parsed)
