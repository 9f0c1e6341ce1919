"""
schemas/invite_schema.py — Marshmallow schema for creating invite links.
"""

from __future__ import annotations

from marshmallow import fields, validate

from backend.app.constants import MAX_DESCRIPTION_LENGTH, MAX_NOTES_LENGTH
from backend.app.models.base import enum_values
from backend.app.models.invite import InviteType
from backend.app.models.iou import Visibility
from backend.app.schemas.common import RequestSchema, UTCDateTimeField, amount_field


class CreateInviteSchema(RequestSchema):
    """
    POST /invites

    type "iou"  : the caller owes the invitee (caller is debtor)
    type "uome" : the invitee owes the caller (caller is creditor)

    The pending-invite limit is enforced in invite_service.py.
    """

    type = fields.Str(required=True, validate=validate.OneOf(enum_values(InviteType)))
    description = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=MAX_DESCRIPTION_LENGTH),
    )
    amount = amount_field()
    currency = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=10))
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

    invitee_name = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=100))
    invitee_phone = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=20))
    invitee_email = fields.Email(allow_none=True, load_default=None, validate=validate.Length(max=255))
