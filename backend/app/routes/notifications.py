"""
routes/notifications.py — Notification handlers.

Endpoints (url_prefix=/api/notifications):
  GET  /notifications?limit=&unread_only=  → 200  newest first
  GET  /notifications/unread-count         → 200  {count}
  POST /notifications/:id/read             → 200
  POST /notifications/read-all             → 200  {updated}
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_auth
from backend.app.schemas.notification_schema import NotificationQuerySchema
from backend.app.serializers import serialize_notification
from backend.app.services import notification_service

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route("/", methods=["GET"])
@require_auth
def list_notifications():
    params = NotificationQuerySchema().load(request.args.to_dict())
    notifications = notification_service.list_notifications(
        g.user_id,
        params["limit"],
        params["unread_only"],
        session=db.session,
    )
    return jsonify({
        "success": True,
        "data": [serialize_notification(n) for n in notifications],
        "warnings": [],
    }), 200


@notifications_bp.route("/unread-count", methods=["GET"])
@require_auth
def unread_count():
    count = notification_service.unread_count(g.user_id, session=db.session)
    return jsonify({"success": True, "data": {"count": count}, "warnings": []}), 200


@notifications_bp.route("/<int:notification_id>/read", methods=["POST"])
@require_auth
def mark_read(notification_id: int):
    notification = notification_service.mark_read(notification_id, g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": serialize_notification(notification), "warnings": []}), 200


@notifications_bp.route("/read-all", methods=["POST"])
@require_auth
def mark_all_read():
    updated = notification_service.mark_all_read(g.user_id, session=db.session)
    db.session.commit()
    return jsonify({"success": True, "data": {"updated": updated}, "warnings": []}), 200
