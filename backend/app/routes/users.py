"""
routes/users.py — User search.

Endpoints (url_prefix=/api/users):
  GET /users/search?q= → 200  up to 20 matching users (public fields only)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.friend_schema import UserSearchQuerySchema
from backend.app.serializers import user_summary
from backend.app.services import user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/search", methods=["GET"])
@require_auth
def search_users():
    params = UserSearchQuerySchema().load(request.args.to_dict())
    users = user_service.search_users(params["q"], g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [user_summary(u) for u in users],
        "warnings": [],
    }), 200
