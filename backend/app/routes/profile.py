"""
routes/profile.py — Profile, onboarding and settings handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.

Endpoints (url_prefix=/api/profile):
  GET  /profile/me                         → 200  caller's full profile
  GET  /profile/check-username/:username   → 200  availability + suggestions
  POST /profile/complete                   → 200  first name + username
  PUT  /profile/settings                   → 200  partial settings update
  GET  /profile/:id                        → 200  public profile
  GET  /profile/:id/street-cred            → 200  stats, or null when hidden
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.profile_schema import CompleteProfileSchema, UpdateSettingsSchema
from backend.app.serializers import private_profile
from backend.app.services import profile_service

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("/me", methods=["GET"])
@require_auth
def get_me():
    user = profile_service.get_user_or_404(g.user_id, session=db.session)
    return jsonify({"success": True, "data": private_profile(user), "warnings": []}), 200


@profile_bp.route("/check-username/<string:username>", methods=["GET"])
@require_auth
def check_username(username: str):
    result = profile_service.check_username(username, g.user_id, session=db.session)
    return jsonify({"success": True, "data": result, "warnings": []}), 200


@profile_bp.route("/complete", methods=["POST"])
@require_auth
def complete_profile():
    data = CompleteProfileSchema().load(request.get_json(silent=True) or {})
    user = profile_service.complete_profile(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": private_profile(user), "warnings": []}), 200


@profile_bp.route("/settings", methods=["PUT"])
@require_auth
def update_settings():
    data = UpdateSettingsSchema().load(request.get_json(silent=True) or {})
    user = profile_service.update_settings(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": private_profile(user), "warnings": []}), 200


@profile_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_profile(user_id: int):
    profile = profile_service.get_public_profile(user_id, g.user_id, session=db.session)
    return jsonify({"success": True, "data": profile, "warnings": []}), 200


@profile_bp.route("/<int:user_id>/street-cred", methods=["GET"])
@require_auth
def get_street_cred(user_id: int):
    street_cred = profile_service.get_street_cred(user_id, g.user_id, session=db.session)
    return jsonify({"success": True, "data": street_cred, "warnings": []}), 200
