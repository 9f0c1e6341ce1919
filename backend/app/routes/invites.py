"""
routes/invites.py — Invite link handlers.

Viewing and declining are public: the token in the URL is the credential.
Creating, listing, accepting and cancelling require a signed-in user.

Endpoints (url_prefix=/api/invites):
  POST   /invites                 → 201  auth; creates IOU + invite
  GET    /invites/pending         → 200  auth; caller's pending invites
  GET    /invites/:token          → 200  public; 404 / 410 otherwise
  POST   /invites/:token/accept   → 200  auth; returns the IOU
  POST   /invites/:token/decline  → 200  public
  DELETE /invites/:id             → 200  auth; inviter cancels
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.invite_schema import CreateInviteSchema
from backend.app.serializers import serialize_invite, serialize_iou, user_summary
from backend.app.services import invite_service

invites_bp = Blueprint("invites", __name__)


@invites_bp.route("/", methods=["POST"])
@require_auth
def create_invite():
    data = CreateInviteSchema().load(request.get_json(silent=True) or {})
    invite = invite_service.create_invite(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({
        "success": True,
        "data": {
            "invite": serialize_invite(invite),
            "iou": serialize_iou(invite.iou, include_payments=False),
            "invite_url": invite_service.invite_url(
                invite.token,
                current_app.config["INVITE_BASE_PATH"],
            ),
        },
        "warnings": [],
    }), 201


@invites_bp.route("/pending", methods=["GET"])
@require_auth
def list_pending_invites():
    invites = invite_service.list_pending_invites(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_invite(i, include_iou=True) for i in invites],
        "warnings": [],
    }), 200


@invites_bp.route("/<string:token>", methods=["GET"])
def view_invite(token: str):
    """
    Public invite page data. An overdue invite is expired (and the expiry
    committed) before the 410 is raised.
    """
    if invite_service.expire_if_overdue(token, session=db.session):
        db.session.commit()

    invite = invite_service.get_viewable_invite(token, session=db.session)
    data = serialize_invite(invite, include_iou=True)
    data["inviter"] = user_summary(invite.inviter)
    return jsonify({"success": True, "data": data, "warnings": []}), 200


@invites_bp.route("/<string:token>/accept", methods=["POST"])
@require_auth
def accept_invite(token: str):
    iou = invite_service.accept_invite(token, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_iou(iou), "warnings": []}), 200


@invites_bp.route("/<string:token>/decline", methods=["POST"])
def decline_invite(token: str):
    invite = invite_service.decline_invite(token, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_invite(invite), "warnings": []}), 200


@invites_bp.route("/<int:invite_id>", methods=["DELETE"])
@require_auth
def cancel_invite(invite_id: int):
    invite = invite_service.cancel_invite(invite_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_invite(invite), "warnings": []}), 200
