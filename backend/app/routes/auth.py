"""
routes/auth.py — First-login endpoint.

Identity tokens are issued by the external provider; there is no register,
password or refresh endpoint here. The client signs in with the provider,
then calls POST /auth/login once to get (or create) its local user row.

Endpoints (url_prefix=/api/auth):
  POST /auth/login → 200 existing user, 201 newly provisioned user
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_identity
from backend.app.serializers import private_profile
from backend.app.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
@require_identity
def login():
    user, created = auth_service.login_or_provision(g.identity, session=db.session)
    db.session.commit()
    return jsonify({
        "success": True,
        "data": private_profile(user),
        "warnings": [],
    }), 201 if created else 200
