"""
schemas/profile_schema.py — Marshmallow schemas for profile endpoints.

Validation responsibility:
  - This file: username / first-name format, settings enums.
  - services/profile_service.py: username availability (USERNAME_TAKEN) and
    the username change cooldown (USERNAME_CHANGE_LIMIT); both need the DB.
"""

from __future__ import annotations

from marshmallow import ValidationError, fields, post_load, pre_load, validate

from backend.app.constants import VALID_CURRENCIES, VALID_DATE_FORMATS, VALID_TIME_FORMATS
from backend.app.models.base import enum_values
from backend.app.models.iou import Visibility
from backend.app.models.user import (
    FriendRequestSetting,
    ProfileVisibility,
    StreetCredVisibility,
)
from backend.app.schemas.common import RequestSchema
from backend.app.utils.validation import (
    capitalize_first_name,
    first_name_error,
    normalize_username,
    username_error,
)


def _validate_username(value: str) -> None:
    problem = username_error(value)
    if problem:
        raise ValidationError(problem)


def _validate_first_name(value: str) -> None:
    problem = first_name_error(value)
    if problem:
        raise ValidationError(problem)


class _NameFieldsMixin:
    """Trims and lowercases the username, trims the first name, before validation."""

    @pre_load
    def normalize_names(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("username"), str):
            data["username"] = normalize_username(data["username"])
        if isinstance(data.get("first_name"), str):
            data["first_name"] = data["first_name"].strip()
        return data

    @post_load
    def capitalize(self, data, **kwargs):
        if data.get("first_name"):
            data["first_name"] = capitalize_first_name(data["first_name"])
        return data


class CompleteProfileSchema(_NameFieldsMixin, RequestSchema):
    """POST /profile/complete — first-time onboarding."""

    first_name = fields.Str(required=True, validate=_validate_first_name)
    username = fields.Str(required=True, validate=_validate_username)


class UpdateSettingsSchema(_NameFieldsMixin, RequestSchema):
    """
    PUT /profile/settings

    Every field is optional. Only keys present in the body are returned by
    load(), so the service can tell "not sent" from "cleared".
    """

    first_name = fields.Str(validate=_validate_first_name)
    username = fields.Str(validate=_validate_username)
    venmo_handle = fields.Str(allow_none=True, validate=validate.Length(max=50))

    street_cred_visibility = fields.Str(
        validate=validate.OneOf(enum_values(StreetCredVisibility)),
    )
    feed_visible = fields.Bool()
    friend_request_setting = fields.Str(
        validate=validate.OneOf(enum_values(FriendRequestSetting)),
    )
    profile_visibility = fields.Str(
        validate=validate.OneOf(enum_values(ProfileVisibility)),
    )
    hide_from_search = fields.Bool()

    default_iou_visibility = fields.Str(validate=validate.OneOf(enum_values(Visibility)))
    default_currency = fields.Str(validate=validate.OneOf(VALID_CURRENCIES))
    date_format = fields.Str(validate=validate.OneOf(VALID_DATE_FORMATS))
    time_format = fields.Str(validate=validate.OneOf(VALID_TIME_FORMATS))
