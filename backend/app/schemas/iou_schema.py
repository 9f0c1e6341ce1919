"""
schemas/iou_schema.py — Marshmallow schemas for IOU endpoints.

Validation responsibility:
  - This file: field types, lengths, amount range and precision.
  - services/iou_service.py: friendship, blocking, self-IOU and every
    status/actor rule (they need the caller's id and a DB lookup).
"""

from __future__ import annotations

from marshmallow import fields, validate

from backend.app.constants import MAX_DESCRIPTION_LENGTH, MAX_NOTES_LENGTH
from backend.app.models.base import enum_values
from backend.app.models.iou import IOUStatus, Visibility
from backend.app.schemas.common import RequestSchema, UTCDateTimeField, amount_field


class _IOUFieldsSchema(RequestSchema):
    """Fields shared by IOUs and UOMes; the counterparty id is added by subclasses."""

    description = fields.Str(
        required=True,
        validate=validate.Length(
            min=1,
            max=MAX_DESCRIPTION_LENGTH,
            error=f"Description must be 1-{MAX_DESCRIPTION_LENGTH} characters.",
        ),
    )
    amount = amount_field()
    currency = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=10),
    )
    # None means "use the caller's default_iou_visibility".
    visibility = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.OneOf(enum_values(Visibility)),
    )
    due_date = UTCDateTimeField(allow_none=True, load_default=None)
    notes = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=MAX_NOTES_LENGTH),
    )


class CreateIOUSchema(_IOUFieldsSchema):
    """POST /ious — the caller owes `creditor_id`."""

    creditor_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class CreateUOMeSchema(_IOUFieldsSchema):
    """POST /ious/uome — `debtor_id` owes the caller."""

    debtor_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class AddPaymentSchema(RequestSchema):
    """
    POST /ious/:id/payments

    A payment may be purely descriptive ("bought lunch"), so amount is
    optional. Overpayment is a warning, decided in the service.
    """

    description = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=MAX_NOTES_LENGTH),
    )
    amount = amount_field()


class ListIOUsQuerySchema(RequestSchema):
    """GET /ious?filter=&status="""

    filter = fields.Str(
        load_default="all",
        validate=validate.OneOf(["all", "owed_by_me", "owed_to_me"]),
    )
    status = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.OneOf(enum_values(IOUStatus)),
    )
