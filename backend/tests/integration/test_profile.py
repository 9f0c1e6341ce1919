"""
tests/integration/test_profile.py — Onboarding, settings and profile visibility.

Endpoints covered:
  GET  /api/profile/me
  GET  /api/profile/check-username/:username
  POST /api/profile/complete
  PUT  /api/profile/settings
  GET  /api/profile/:id
  GET  /api/profile/:id/street-cred
"""

from __future__ import annotations

from .conftest import auth_headers, login, make_active_iou, make_friends


# ═══════════════════════════════════════════════════════════════════════════
# POST /profile/complete
# ═══════════════════════════════════════════════════════════════════════════

class TestCompleteProfile:

    def test_sets_name_and_username(self, client):
        alice = login(client, "alice")
        resp = client.post(
            "/api/profile/complete",
            json={"first_name": "  alice ", "username": "  Alice_W "},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 200
        user = resp.get_json()["data"]
        assert user["first_name"] == "Alice"
        assert user["username"] == "alice_w"
        assert user["profile_complete"] is True
        assert user["setup_complete"] is True
        assert user["username_changed_at"] is not None

    def test_taken_username_returns_409_with_suggestions(self, client):
        login(client, "bob")
        alice = login(client, "alice")
        resp = client.post(
            "/api/profile/complete",
            json={"first_name": "Alice", "username": "bob"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 409
        error = resp.get_json()["error"]
        assert error["code"] == "USERNAME_TAKEN"
        assert error["field"] == "username"
        assert 0 < len(error["suggestions"]) <= 3
        assert "bob" not in error["suggestions"]

    def test_invalid_username_returns_400(self, client):
        alice = login(client, "alice")
        resp = client.post(
            "/api/profile/complete",
            json={"first_name": "Alice", "username": "a!"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_FIELD"
        assert error["field"] == "username"

    def test_non_letter_first_name_returns_400(self, client):
        alice = login(client, "alice")
        resp = client.post(
            "/api/profile/complete",
            json={"first_name": "Al1ce", "username": "alice_w"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "first_name"

    def test_missing_first_name_returns_missing_field(self, client):
        alice = login(client, "alice")
        resp = client.post(
            "/api/profile/complete",
            json={"username": "alice_w"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "MISSING_FIELD"
        assert error["field"] == "first_name"


# ═══════════════════════════════════════════════════════════════════════════
# GET /profile/check-username/:username
# ═══════════════════════════════════════════════════════════════════════════

class TestCheckUsername:

    def test_available(self, client):
        alice = login(client, "alice")
        resp = client.get("/api/profile/check-username/fresh_name", headers=auth_headers(alice["token"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"available": True}

    def test_own_username_is_available(self, client):
        alice = login(client, "alice")
        resp = client.get("/api/profile/check-username/ALICE", headers=auth_headers(alice["token"]))
        assert resp.get_json()["data"]["available"] is True

    def test_taken(self, client):
        login(client, "bob")
        alice = login(client, "alice")
        resp = client.get("/api/profile/check-username/bob", headers=auth_headers(alice["token"]))
        data = resp.get_json()["data"]
        assert data["available"] is False
        assert data["suggestions"]

    def test_invalid_format_reports_error_without_raising(self, client):
        alice = login(client, "alice")
        resp = client.get("/api/profile/check-username/.bad", headers=auth_headers(alice["token"]))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["available"] is False
        assert data["error"]
        assert data["suggestions"] == []


# ═══════════════════════════════════════════════════════════════════════════
# PUT /profile/settings
# ═══════════════════════════════════════════════════════════════════════════

class TestUpdateSettings:

    def test_partial_update(self, client):
        alice = login(client, "alice")
        resp = client.put(
            "/api/profile/settings",
            json={"venmo_handle": "@alice", "default_iou_visibility": "public", "time_format": "24h"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 200
        user = resp.get_json()["data"]
        assert user["venmo_handle"] == "@alice"
        assert user["default_iou_visibility"] == "public"
        assert user["time_format"] == "24h"
        assert user["date_format"] == "DD/MM/YYYY"

    def test_empty_body_returns_no_updates(self, client):
        alice = login(client, "alice")
        resp = client.put("/api/profile/settings", json={}, headers=auth_headers(alice["token"]))
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "NO_UPDATES"

    def test_invalid_enum_value_returns_400(self, client):
        alice = login(client, "alice")
        resp = client.put(
            "/api/profile/settings",
            json={"friend_request_setting": "sometimes"},
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "friend_request_setting"

    def test_first_username_change_then_cooldown(self, client):
        alice = login(client, "alice")
        headers = auth_headers(alice["token"])

        resp = client.put("/api/profile/settings", json={"username": "alice_two"}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["username"] == "alice_two"
        assert resp.get_json()["data"]["setup_complete"] is True

        resp = client.put("/api/profile/settings", json={"username": "alice_three"}, headers=headers)
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "USERNAME_CHANGE_LIMIT"
        assert "next_change_at" in error

    def test_resending_current_username_is_not_a_change(self, client):
        alice = login(client, "alice")
        headers = auth_headers(alice["token"])
        client.put("/api/profile/settings", json={"username": "alice_two"}, headers=headers)

        resp = client.put(
            "/api/profile/settings",
            json={"username": "alice_two", "venmo_handle": "@a"},
            headers=headers,
        )
        assert resp.status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# GET /profile/:id and /profile/:id/street-cred
# ═══════════════════════════════════════════════════════════════════════════

class TestProfileVisibility:

    def test_public_profile(self, client):
        alice = login(client, "alice")
        bob = login(client, "bob")
        resp = client.get(f"/api/profile/{bob['user']['id']}", headers=auth_headers(alice["token"]))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["username"] == "bob"
        assert "email" not in data
        assert "auth_uid" not in data

    def test_friends_only_profile_is_restricted_for_strangers(self, client):
        alice = login(client, "alice")
        bob = login(client, "bob")
        client.put(
            "/api/profile/settings",
            json={"profile_visibility": "friends_only"},
            headers=auth_headers(bob["token"]),
        )

        resp = client.get(f"/api/profile/{bob['user']['id']}", headers=auth_headers(alice["token"]))
        assert resp.get_json()["data"] == {"id": bob["user"]["id"], "username": "bob", "restricted": True}

        make_friends(client, alice, bob)
        resp = client.get(f"/api/profile/{bob['user']['id']}", headers=auth_headers(alice["token"]))
        assert "restricted" not in resp.get_json()["data"]

    def test_unknown_user_returns_404(self, client):
        alice = login(client, "alice")
        resp = client.get("/api/profile/99999", headers=auth_headers(alice["token"]))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "USER_NOT_FOUND"

    def test_street_cred_hidden_from_non_friends(self, client):
        alice = login(client, "alice")
        bob = login(client, "bob")
        resp = client.get(
            f"/api/profile/{bob['user']['id']}/street-cred",
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"] is None

    def test_street_cred_counts_for_friends(self, client):
        alice = login(client, "alice")
        bob = login(client, "bob")
        make_friends(client, alice, bob)

        iou = make_active_iou(client, bob, alice, description="Lunch")
        client.post(f"/api/ious/{iou['id']}/mark-paid", headers=auth_headers(alice["token"]))
        make_active_iou(client, bob, alice, description="Coffee")

        resp = client.get(
            f"/api/profile/{bob['user']['id']}/street-cred",
            headers=auth_headers(alice["token"]),
        )
        assert resp.get_json()["data"] == {
            "debts_paid": 1,
            "total_debts": 2,
            "outstanding_debts": 1,
        }

    def test_private_street_cred_visible_to_self(self, client):
        alice = login(client, "alice")
        client.put(
            "/api/profile/settings",
            json={"street_cred_visibility": "private"},
            headers=auth_headers(alice["token"]),
        )
        resp = client.get(
            f"/api/profile/{alice['user']['id']}/street-cred",
            headers=auth_headers(alice["token"]),
        )
        assert resp.get_json()["data"]["total_debts"] == 0
