"""
middleware/auth_middleware.py — Identity token authentication decorators.

Identity is delegated to an external provider that issues signed ID tokens.
The decorators here:
  1. Read the Authorization header (expected: "Bearer <token>")
  2. Verify the token signature against the provider's public keys (RS256
     via JWKS), or against IDENTITY_SHARED_SECRET (HS256) when configured
  3. Check expiry, audience (IDENTITY_PROJECT_ID) and issuer
  4. @require_identity stores the verified claims on flask.g.identity
     @require_auth additionally resolves the local user and sets flask.g.user_id

This module only authenticates (401). Authorization decisions such as "only
the creditor may mark an IOU paid" (403) belong in the service layer.

Error codes:
  TOKEN_MISSING        (401) — no Authorization header
  TOKEN_INVALID        (401) — malformed header, bad signature, wrong audience
  TOKEN_EXPIRED        (401) — valid token but exp claim is in the past
  USER_NOT_REGISTERED  (401) — valid token, but POST /auth/login was never called
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request
from sqlalchemy import select

from backend.app.errors import AppError, ErrorCode
from backend.app.extensions import db
from backend.app.models.user import User


def require_identity(f: Callable) -> Callable:
    """
    Route decorator that only verifies the identity token.

    Used by POST /auth/login, which runs before a local user row exists.
    Sets flask.g.identity to the verified claims dict.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        g.identity = verify_identity_token(_read_bearer_token())
        return f(*args, **kwargs)

    return decorated


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces authentication for a registered user.

    Usage:
        @ious_bp.route("/", methods=["GET"])
        @require_auth
        def list_ious():
            user_id = g.user_id  # always an int when this runs
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Verifies the bearer token and maps its subject to a local user id.

    Raises AppError on any failure; the global error handler builds the
    response.
    """
    claims = verify_identity_token(_read_bearer_token())

    user_id = db.session.execute(
        select(User.id).where(User.auth_uid == claims["sub"])
    ).scalar_one_or_none()

    if user_id is None:
        raise AppError(
            ErrorCode.USER_NOT_REGISTERED,
            "No account exists for this identity. Call POST /api/auth/login first.",
            401,
        )

    g.identity = claims
    g.user_id = user_id


def _read_bearer_token() -> str:
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    return parts[1]


@functools.lru_cache(maxsize=4)
def _jwks_client(jwks_url: str) -> jwt.PyJWKClient:
    # PyJWKClient caches fetched keys itself; one client per URL is enough.
    return jwt.PyJWKClient(jwks_url)


def verify_identity_token(raw_token: str) -> dict:
    """
    Decodes and verifies an identity provider ID token.

    Returns the claims dict. `sub` is guaranteed to be a non-empty string.
    """
    config = current_app.config
    shared_secret = config.get("IDENTITY_SHARED_SECRET")
    project_id = config.get("IDENTITY_PROJECT_ID")
    issuer = config.get("IDENTITY_ISSUER") or None

    try:
        if shared_secret:
            key = shared_secret
            algorithms = ["HS256"]
        else:
            key = _jwks_client(config["IDENTITY_JWKS_URL"]).get_signing_key_from_jwt(raw_token).key
            algorithms = ["RS256"]

        payload = jwt.decode(
            raw_token,
            key,
            algorithms=algorithms,
            audience=project_id or None,
            issuer=issuer,
            options={
                "require": ["exp", "sub"],
                "verify_aud": bool(project_id),
            },
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The identity token has expired. Refresh it with the identity provider.",
            401,
        )
    except jwt.PyJWTError:
        # Covers: bad signature, malformed token, wrong audience/issuer,
        # missing claims and JWKS lookup failures.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The identity token is invalid or has been tampered with.",
            401,
        )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The identity token is missing a valid 'sub' claim.",
            401,
        )

    return payload
