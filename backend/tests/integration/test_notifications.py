"""
tests/integration/test_notifications.py — Notification listing and read state.

Endpoints covered:
  GET  /api/notifications?limit=&unread_only=
  GET  /api/notifications/unread-count
  POST /api/notifications/:id/read
  POST /api/notifications/read-all
"""

from __future__ import annotations

import pytest

from .conftest import auth_headers, login, make_friends, make_iou


@pytest.fixture
def inbox(client):
    """bob with three notifications: a friend request and two new IOUs."""
    alice = login(client, "alice")
    bob = login(client, "bob")
    make_friends(client, alice, bob)
    make_iou(client, alice, bob, description="First")
    make_iou(client, alice, bob, description="Second")
    return bob


def _list(client, user, query=""):
    resp = client.get(f"/api/notifications/{query}", headers=auth_headers(user["token"]))
    assert resp.status_code == 200
    return resp.get_json()["data"]


def test_newest_first(client, inbox):
    notifications = _list(client, inbox)
    assert [n["type"] for n in notifications] == ["iou_created", "iou_created", "friend_request"]
    assert all(n["read"] is False for n in notifications)


def test_limit(client, inbox):
    assert len(_list(client, inbox, "?limit=2")) == 2


def test_limit_out_of_range_rejected(client, inbox):
    resp = client.get("/api/notifications/?limit=500", headers=auth_headers(inbox["token"]))
    assert resp.status_code == 400
    assert resp.get_json()["error"]["field"] == "limit"


def test_mark_one_read(client, inbox):
    newest = _list(client, inbox)[0]

    resp = client.post(f"/api/notifications/{newest['id']}/read", headers=auth_headers(inbox["token"]))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["read"] is True

    unread = _list(client, inbox, "?unread_only=true")
    assert newest["id"] not in [n["id"] for n in unread]
    assert len(unread) == 2

    resp = client.get("/api/notifications/unread-count", headers=auth_headers(inbox["token"]))
    assert resp.get_json()["data"] == {"count": 2}


def test_cannot_read_someone_elses_notification(client, inbox):
    carol = login(client, "carol")
    notification_id = _list(client, inbox)[0]["id"]

    resp = client.post(f"/api/notifications/{notification_id}/read", headers=auth_headers(carol["token"]))
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"


def test_read_all(client, inbox):
    resp = client.post("/api/notifications/read-all", headers=auth_headers(inbox["token"]))
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"updated": 3}

    resp = client.get("/api/notifications/unread-count", headers=auth_headers(inbox["token"]))
    assert resp.get_json()["data"] == {"count": 0}
