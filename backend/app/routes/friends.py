"""
routes/friends.py — Friendship and friend-request handlers.

Endpoints (url_prefix=/api/friends):
  GET    /friends                  → 200  accepted friendships
  GET    /friends/requests         → 200  pending requests received
  GET    /friends/requests/sent    → 200  pending requests sent
  GET    /friends/status/:user_id  → 200  none | friends | request_sent | request_received
  POST   /friends/request          → 201  send a request
  POST   /friends/:id/accept       → 200  addressee accepts
  POST   /friends/:id/decline      → 200  addressee declines
  DELETE /friends/:id              → 200  either party removes
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.friend_schema import FriendRequestSchema
from backend.app.serializers import serialize_friendship
from backend.app.services import friend_service

friends_bp = Blueprint("friends", __name__)


@friends_bp.route("/", methods=["GET"])
@require_auth
def list_friends():
    friendships = friend_service.list_friends(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_friendship(f) for f in friendships],
        "warnings": [],
    }), 200


@friends_bp.route("/requests", methods=["GET"])
@require_auth
def list_received_requests():
    requests_ = friend_service.list_received_requests(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_friendship(f) for f in requests_],
        "warnings": [],
    }), 200


@friends_bp.route("/requests/sent", methods=["GET"])
@require_auth
def list_sent_requests():
    requests_ = friend_service.list_sent_requests(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_friendship(f) for f in requests_],
        "warnings": [],
    }), 200


@friends_bp.route("/status/<int:user_id>", methods=["GET"])
@require_auth
def friendship_status(user_id: int):
    status = friend_service.friendship_status(g.user_id, user_id, session=db.session)
    return jsonify({"success": True, "data": status, "warnings": []}), 200


@friends_bp.route("/request", methods=["POST"])
@require_auth
def send_request():
    data = FriendRequestSchema().load(request.get_json(silent=True) or {})
    friendship = friend_service.send_request(g.user_id, data["addressee_id"], session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_friendship(friendship), "warnings": []}), 201


@friends_bp.route("/<int:friendship_id>/accept", methods=["POST"])
@require_auth
def accept_request(friendship_id: int):
    friendship = friend_service.accept_request(friendship_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_friendship(friendship), "warnings": []}), 200


@friends_bp.route("/<int:friendship_id>/decline", methods=["POST"])
@require_auth
def decline_request(friendship_id: int):
    friendship = friend_service.decline_request(friendship_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_friendship(friendship), "warnings": []}), 200


@friends_bp.route("/<int:friendship_id>", methods=["DELETE"])
@require_auth
def remove_friend(friendship_id: int):
    friend_service.remove_friend(friendship_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"id": friendship_id, "removed": True}, "warnings": []}), 200
