"""
tests/integration/test_users.py — User search.

Endpoints covered:
  GET /api/users/search?q=
"""

from __future__ import annotations

from .conftest import auth_headers, login


def _search(client, user, q):
    return client.get(f"/api/users/search?q={q}", headers=auth_headers(user["token"]))


def test_substring_match_ordered_by_username(client):
    alice = login(client, "alice")
    login(client, "bobby")
    login(client, "bob")
    login(client, "carol")

    resp = _search(client, alice, "BOB")
    assert resp.status_code == 200
    assert [u["username"] for u in resp.get_json()["data"]] == ["bob", "bobby"]


def test_results_hold_public_fields_only(client):
    alice = login(client, "alice")
    login(client, "bob")

    user = _search(client, alice, "bob").get_json()["data"][0]
    assert set(user) == {"id", "username", "first_name", "profile_pic_url", "venmo_handle"}


def test_excludes_caller_hidden_and_blocked(client):
    alice = login(client, "alice")
    bob = login(client, "bob")
    bobby = login(client, "bobby")
    login(client, "bobcat")

    client.put("/api/profile/settings", json={"hide_from_search": True}, headers=auth_headers(bob["token"]))
    client.post(f"/api/blocked/{alice['user']['id']}", headers=auth_headers(bobby["token"]))

    resp = _search(client, alice, "bob")
    assert [u["username"] for u in resp.get_json()["data"]] == ["bobcat"]

    resp = _search(client, alice, "alice")
    assert resp.get_json()["data"] == []


def test_wildcards_are_literal(client):
    alice = login(client, "alice")
    login(client, "bob")

    resp = _search(client, alice, "%25")  # a literal "%"
    assert resp.get_json()["data"] == []


def test_missing_query_rejected(client):
    alice = login(client, "alice")

    resp = client.get("/api/users/search", headers=auth_headers(alice["token"]))
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "MISSING_FIELD"

    resp = _search(client, alice, "")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "MISSING_FIELD"
