"""
schemas/friend_schema.py — Marshmallow schemas for friends and user search.
"""

from __future__ import annotations

from marshmallow import fields, validate

from backend.app.schemas.common import RequestSchema


class FriendRequestSchema(RequestSchema):
    """
    POST /friends/request

    Self-requests, blocks and the addressee's friend_request_setting are
    checked in friend_service.py.
    """

    addressee_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class UserSearchQuerySchema(RequestSchema):
    """GET /users/search?q="""

    q = fields.Str(required=True, validate=validate.Length(min=1, max=100))
