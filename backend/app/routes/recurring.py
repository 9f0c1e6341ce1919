"""
routes/recurring.py — Recurring IOU handlers.

Endpoints (url_prefix=/api/recurring):
  GET    /recurring            → 200  templates involving the caller
  POST   /recurring            → 201
  PUT    /recurring/:id        → 200  creator only
  DELETE /recurring/:id        → 200  creator only
  POST   /recurring/generate   → 200  generate the caller's due IOUs

The same generation runs for every user from `flask generate-recurring`
(registered in app/__init__.py).
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.recurring_schema import CreateRecurringSchema, UpdateRecurringSchema
from backend.app.serializers import serialize_iou, serialize_recurring
from backend.app.services import recurring_service

recurring_bp = Blueprint("recurring", __name__)


@recurring_bp.route("/", methods=["GET"])
@require_auth
def list_recurring():
    templates = recurring_service.list_recurring(g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_recurring(r) for r in templates],
        "warnings": [],
    }), 200


@recurring_bp.route("/", methods=["POST"])
@require_auth
def create_recurring():
    data = CreateRecurringSchema().load(request.get_json(silent=True) or {})
    recurring = recurring_service.create_recurring(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_recurring(recurring), "warnings": []}), 201


@recurring_bp.route("/<int:recurring_id>", methods=["PUT"])
@require_auth
def update_recurring(recurring_id: int):
    data = UpdateRecurringSchema().load(request.get_json(silent=True) or {})
    recurring = recurring_service.update_recurring(recurring_id, g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_recurring(recurring), "warnings": []}), 200


@recurring_bp.route("/<int:recurring_id>", methods=["DELETE"])
@require_auth
def delete_recurring(recurring_id: int):
    recurring_service.delete_recurring(recurring_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"id": recurring_id, "deleted": True}, "warnings": []}), 200


@recurring_bp.route("/generate", methods=["POST"])
@require_auth
def generate_due():
    generated = recurring_service.generate_due(g.user_id, session=db.session)
    db.session.commit()
    return jsonify({
        "success": True,
        "data": {
            "generated_count": len(generated),
            "generated": [serialize_iou(iou, include_payments=False) for iou in generated],
        },
        "warnings": [],
    }), 200
