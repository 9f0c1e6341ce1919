"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run the Flask test client against in-memory SQLite.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - Identity tokens are minted locally with PyJWT (HS256) using the testing
    shared secret, so no identity provider is contacted.

Helper functions (not fixtures) are provided for common operations:
  - make_token(uid, ...)        → signed identity token
  - auth_headers(token)         → {"Authorization": "Bearer <token>"}
  - login(client, username)     → {"user": {...}, "token": "..."}
  - make_friends(client, a, b)  → accepted friendship dict
  - make_iou(client, ...)       → HTTP response

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test.
"""

from __future__ import annotations

import time

import jwt
import pytest

from backend.app import create_app
from backend.app.extensions import db as _db
from backend.config import TestingConfig


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire
    test session and creates every table.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows after every test, children before parents.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(table.delete())
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_token(
    uid: str,
    email: str | None = None,
    expires_in: int = 3600,
    secret: str = TestingConfig.IDENTITY_SHARED_SECRET,
    **claims,
) -> str:
    """Mints an identity token the testing config will accept."""
    now = int(time.time())
    payload = {
        "sub": uid,
        "aud": TestingConfig.IDENTITY_PROJECT_ID,
        "iss": TestingConfig.IDENTITY_ISSUER,
        "iat": now,
        "exp": now + expires_in,
    }
    if email is not None:
        payload["email"] = email
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def login(client, username: str = "alice", email: str | None = None) -> dict:
    """
    Signs a user in through POST /auth/login, provisioning them on first call.
    The email's local part becomes the provisioned username.

    Returns: {"user": {...private profile...}, "token": "..."}
    """
    if email is None:
        email = f"{username}@example.com"
    token = make_token(f"uid-{username}", email=email)
    resp = client.post("/api/auth/login", headers=auth_headers(token))
    assert resp.status_code in (200, 201), f"login failed: {resp.get_json()}"
    return {"user": resp.get_json()["data"], "token": token}


def make_friends(client, requester: dict, addressee: dict) -> dict:
    """Sends and accepts a friend request. Returns the accepted friendship."""
    resp = client.post(
        "/api/friends/request",
        json={"addressee_id": addressee["user"]["id"]},
        headers=auth_headers(requester["token"]),
    )
    assert resp.status_code == 201, f"friend request failed: {resp.get_json()}"
    friendship_id = resp.get_json()["data"]["id"]

    resp = client.post(
        f"/api/friends/{friendship_id}/accept",
        headers=auth_headers(addressee["token"]),
    )
    assert resp.status_code == 200, f"accept failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_iou(
    client,
    debtor: dict,
    creditor: dict,
    description: str = "Pizza",
    amount: str | None = "20.00",
    **extra,
):
    """The debtor records an IOU to the creditor. Returns the HTTP response."""
    payload = {"creditor_id": creditor["user"]["id"], "description": description, **extra}
    if amount is not None:
        payload["amount"] = amount
    return client.post("/api/ious/", json=payload, headers=auth_headers(debtor["token"]))


def make_active_iou(client, debtor: dict, creditor: dict, **kwargs) -> dict:
    """Creates an IOU and has the creditor accept it. Returns the active IOU dict."""
    resp = make_iou(client, debtor, creditor, **kwargs)
    assert resp.status_code == 201, f"make_iou failed: {resp.get_json()}"
    iou_id = resp.get_json()["data"]["id"]

    resp = client.post(f"/api/ious/{iou_id}/accept", headers=auth_headers(creditor["token"]))
    assert resp.status_code == 200, f"accept failed: {resp.get_json()}"
    return resp.get_json()["data"]
