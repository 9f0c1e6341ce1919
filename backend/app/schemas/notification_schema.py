"""
schemas/notification_schema.py — Query-string schema for listing notifications.
"""

from __future__ import annotations

from marshmallow import fields, validate

from backend.app.constants import DEFAULT_NOTIFICATION_LIMIT, MAX_NOTIFICATION_LIMIT
from backend.app.schemas.common import RequestSchema


class NotificationQuerySchema(RequestSchema):
    """GET /notifications?limit=&unread_only="""

    limit = fields.Int(
        load_default=DEFAULT_NOTIFICATION_LIMIT,
        validate=validate.Range(min=1, max=MAX_NOTIFICATION_LIMIT),
    )
    unread_only = fields.Bool(load_default=False)
