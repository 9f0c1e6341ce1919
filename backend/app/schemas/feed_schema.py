"""
schemas/feed_schema.py — Marshmallow schema for feed reactions.
"""

from __future__ import annotations

from marshmallow import fields, validate

from backend.app.models.base import enum_values
from backend.app.models.feed_reaction import ReactionType
from backend.app.schemas.common import RequestSchema


class ReactionSchema(RequestSchema):
    """POST /feed/:iou_id/react"""

    reaction_type = fields.Str(
        required=True,
        validate=validate.OneOf(enum_values(ReactionType)),
    )
