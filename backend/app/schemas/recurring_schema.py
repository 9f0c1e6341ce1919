"""
schemas/recurring_schema.py — Marshmallow schemas for recurring IOU endpoints.

Validation responsibility:
  - This file: field types, the debtor/creditor exclusivity rule and the
    frequency ↔ day field pairing.
  - services/recurring_service.py: friendship checks and next_due_at.
"""

from __future__ import annotations

from marshmallow import ValidationError, fields, missing, validate, validates_schema

from backend.app.constants import MAX_DESCRIPTION_LENGTH, MAX_NOTES_LENGTH
from backend.app.models.base import enum_values
from backend.app.models.iou import Visibility
from backend.app.models.recurring_iou import Frequency
from backend.app.schemas.common import RequestSchema, amount_field


def _check_day_for_frequency(frequency: str | None, data: dict) -> None:
    if frequency == Frequency.WEEKLY.value and data.get("day_of_week") is None:
        raise ValidationError("day_of_week is required for weekly recurrence.", "day_of_week")
    if frequency == Frequency.MONTHLY.value and data.get("day_of_month") is None:
        raise ValidationError("day_of_month is required for monthly recurrence.", "day_of_month")


class CreateRecurringSchema(RequestSchema):
    """
    POST /recurring

    Exactly one of debtor_id (the caller is the creditor) or creditor_id
    (the caller is the debtor) must be sent.
    """

    debtor_id = fields.Int(strict=True, allow_none=True, validate=validate.Range(min=1))
    creditor_id = fields.Int(strict=True, allow_none=True, validate=validate.Range(min=1))

    description = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=MAX_DESCRIPTION_LENGTH),
    )
    amount = amount_field()
    currency = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=10))
    visibility = fields.Str(
        load_default=Visibility.PRIVATE.value,
        validate=validate.OneOf(enum_values(Visibility)),
    )
    notes = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=MAX_NOTES_LENGTH),
    )

    frequency = fields.Str(required=True, validate=validate.OneOf(enum_values(Frequency)))
    day_of_week = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=0, max=6))
    day_of_month = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=1, max=31))

    @validates_schema
    def validate_parties_and_schedule(self, data, **kwargs):
        if (data.get("debtor_id") is None) == (data.get("creditor_id") is None):
            raise ValidationError("Provide exactly one of debtor_id or creditor_id.")
        _check_day_for_frequency(data.get("frequency"), data)


class UpdateRecurringSchema(RequestSchema):
    """
    PUT /recurring/:id

    Partial update. The frequency/day pairing is re-checked in the service
    against the stored row, since the body may change only one of them.
    """

    description = fields.Str(validate=validate.Length(min=1, max=MAX_DESCRIPTION_LENGTH))
    amount = amount_field(load_default=missing)
    currency = fields.Str(allow_none=True, validate=validate.Length(max=10))
    visibility = fields.Str(validate=validate.OneOf(enum_values(Visibility)))
    notes = fields.Str(allow_none=True, validate=validate.Length(max=MAX_NOTES_LENGTH))
    frequency = fields.Str(validate=validate.OneOf(enum_values(Frequency)))
    day_of_week = fields.Int(allow_none=True, validate=validate.Range(min=0, max=6))
    day_of_month = fields.Int(allow_none=True, validate=validate.Range(min=1, max=31))
    is_active = fields.Bool()
