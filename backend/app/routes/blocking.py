"""
routes/blocking.py — Block list handlers.

Endpoints (url_prefix=/api/blocked):
  GET    /blocked                → 200  users the caller blocked
  POST   /blocked/:user_id       → 201  block (also ends any friendship)
  DELETE /blocked/:user_id       → 200  unblock
  GET    /blocked/check/:user_id → 200  {is_blocked}
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.serializers import serialize_block
from backend.app.services import blocking_service

blocking_bp = Blueprint("blocking", __name__)


@blocking_bp.route("/", methods=["GET"])
@require_auth
def list_blocked():
    blocks = blocking_service.list_blocked(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_block(b) for b in blocks],
        "warnings": [],
    }), 200


@blocking_bp.route("/<int:user_id>", methods=["POST"])
@require_auth
def block_user(user_id: int):
    block = blocking_service.block_user(g.user_id, user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_block(block), "warnings": []}), 201


@blocking_bp.route("/<int:user_id>", methods=["DELETE"])
@require_auth
def unblock_user(user_id: int):
    blocking_service.unblock_user(g.user_id, user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"blocked_id": user_id, "unblocked": True}, "warnings": []}), 200


@blocking_bp.route("/check/<int:user_id>", methods=["GET"])
@require_auth
def check_blocked(user_id: int):
    is_blocked = blocking_service.has_blocked(g.user_id, user_id, session=db.session)
    return jsonify({"success": True, "data": {"is_blocked": is_blocked}, "warnings": []}), 200
