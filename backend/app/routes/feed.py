"""
routes/feed.py — Activity feed handlers.

Endpoints (url_prefix=/api/feed):
  GET    /feed                → 200  public IOUs of the caller and friends
  POST   /feed/:iou_id/react  → 200  add or replace the caller's reaction
  DELETE /feed/:iou_id/react  → 200  remove it
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.feed_schema import ReactionSchema
from backend.app.services import feed_service

feed_bp = Blueprint("feed", __name__)


@feed_bp.route("/", methods=["GET"])
@require_auth
def get_feed():
    items = feed_service.get_feed(g.user_id, session=db.session)
    return jsonify({"success": True, "data": items, "warnings": []}), 200


@feed_bp.route("/<int:iou_id>/react", methods=["POST"])
@require_auth
def react(iou_id: int):
    data = ReactionSchema().load(request.get_json(silent=True) or {})
    reaction = feed_service.react(iou_id, g.user_id, data["reaction_type"], session=db.session)
    db.session.commit()
    return jsonify({
        "success": True,
        "data": {
            "id": reaction.id,
            "iou_id": reaction.iou_id,
            "user_id": reaction.user_id,
            "reaction_type": reaction.reaction_type,
        },
        "warnings": [],
    }), 200


@feed_bp.route("/<int:iou_id>/react", methods=["DELETE"])
@require_auth
def remove_reaction(iou_id: int):
    removed = feed_service.remove_reaction(iou_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"iou_id": iou_id, "removed": removed}, "warnings": []}), 200
