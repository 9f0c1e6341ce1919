"""
routes/ious.py — IOU handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - Status rules live in services/iou_service.py (see TRANSITIONS there).

Special: add_payment returns (Payment, warnings[]).
  An OVERPAYMENT warning is included in the envelope; status is still 201.

Endpoints (url_prefix=/api/ious):
  GET    /ious?filter=&status=      → 200  IOUs involving the caller
  POST   /ious                      → 201  caller owes creditor_id
  POST   /ious/uome                 → 201  debtor_id owes caller
  GET    /ious/:id                  → 200
  DELETE /ious/:id                  → 200  creator withdraws a pending IOU
  POST   /ious/:id/accept           → 200
  POST   /ious/:id/decline          → 200
  POST   /ious/:id/request-paid     → 200
  POST   /ious/:id/confirm-paid     → 200
  POST   /ious/:id/dispute          → 200
  POST   /ious/:id/mark-paid        → 200
  GET    /ious/:id/payments         → 200  newest first
  POST   /ious/:id/payments         → 201
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.iou_schema import (
    AddPaymentSchema,
    CreateIOUSchema,
    CreateUOMeSchema,
    ListIOUsQuerySchema,
)
from backend.app.serializers import serialize_iou, serialize_payment
from backend.app.services import iou_service

ious_bp = Blueprint("ious", __name__)


@ious_bp.route("/", methods=["GET"])
@require_auth
def list_ious():
    params = ListIOUsQuerySchema().load(request.args.to_dict())
    ious = iou_service.list_ious(
        g.user_id,
        session=db.session,
        filter_=params["filter"],
        status=params["status"],
    )
    return jsonify({
        "success": True,
        "data": [serialize_iou(iou) for iou in ious],
        "warnings": [],
    }), 200


@ious_bp.route("/", methods=["POST"])
@require_auth
def create_iou():
    data = CreateIOUSchema().load(request.get_json(silent=True) or {})
    iou = iou_service.create_iou(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_iou(iou), "warnings": []}), 201


@ious_bp.route("/uome", methods=["POST"])
@require_auth
def create_uome():
    data = CreateUOMeSchema().load(request.get_json(silent=True) or {})
    iou = iou_service.create_uome(g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_iou(iou), "warnings": []}), 201


@ious_bp.route("/<int:iou_id>", methods=["GET"])
@require_auth
def get_iou(iou_id: int):
    iou = iou_service.get_iou(iou_id, g.user_id, session=db.session)
    return jsonify({"success": True, "data": serialize_iou(iou), "warnings": []}), 200


@ious_bp.route("/<int:iou_id>", methods=["DELETE"])
@require_auth
def delete_iou(iou_id: int):
    iou_service.delete_iou(iou_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"id": iou_id, "deleted": True}, "warnings": []}), 200


def _transition(iou_id: int, action: str):
    iou = iou_service.transition_iou(iou_id, g.user_id, action, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_iou(iou), "warnings": []}), 200


@ious_bp.route("/<int:iou_id>/accept", methods=["POST"])
@require_auth
def accept_iou(iou_id: int):
    return _transition(iou_id, "accept")


@ious_bp.route("/<int:iou_id>/decline", methods=["POST"])
@require_auth
def decline_iou(iou_id: int):
    return _transition(iou_id, "decline")


@ious_bp.route("/<int:iou_id>/request-paid", methods=["POST"])
@require_auth
def request_paid(iou_id: int):
    return _transition(iou_id, "request-paid")


@ious_bp.route("/<int:iou_id>/confirm-paid", methods=["POST"])
@require_auth
def confirm_paid(iou_id: int):
    return _transition(iou_id, "confirm-paid")


@ious_bp.route("/<int:iou_id>/dispute", methods=["POST"])
@require_auth
def dispute_payment(iou_id: int):
    return _transition(iou_id, "dispute")


@ious_bp.route("/<int:iou_id>/mark-paid", methods=["POST"])
@require_auth
def mark_paid(iou_id: int):
    return _transition(iou_id, "mark-paid")


@ious_bp.route("/<int:iou_id>/payments", methods=["GET"])
@require_auth
def list_payments(iou_id: int):
    payments = iou_service.list_payments(iou_id, g.user_id, session=db.session)
    return jsonify({
        "success": True,
        "data": [serialize_payment(p) for p in payments],
        "warnings": [],
    }), 200


@ious_bp.route("/<int:iou_id>/payments", methods=["POST"])
@require_auth
def add_payment(iou_id: int):
    """
    If cumulative payments exceed the IOU amount, the payment is still
    recorded and an OVERPAYMENT warning is returned. Status remains 201.
    """
    data = AddPaymentSchema().load(request.get_json(silent=True) or {})
    payment, warnings = iou_service.add_payment(iou_id, g.user_id, data, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_payment(payment), "warnings": warnings}), 201
