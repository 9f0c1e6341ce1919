"""
errors.py — AppError base class and error code registry.

Every error returned by the API uses a code defined here. Service and route
code raise AppError; the global handlers in app/__init__.py turn it into the
`{"success": false, "error": {...}}` envelope.

401 means "we do not know who you are"; 403 means "we know who you are, but
you may not do this". Do not swap them.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
            details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field    # which request field caused the error
        self.details     = details  # extra keys merged into the error payload

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details:
            payload.update(self.details)
        return {"success": False, "error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# These are the string values sent in the API response. Do not rename them;
# the client switches on them.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    INVALID_AMOUNT_PRECISION   = "INVALID_AMOUNT_PRECISION"
    INVALID_USERNAME           = "INVALID_USERNAME"
    INVALID_FIRST_NAME         = "INVALID_FIRST_NAME"
    BAD_REQUEST                = "BAD_REQUEST"
    NO_UPDATES                 = "NO_UPDATES"

    # ── Business Rule Violations (400 / 422) ───────────────────────────────
    NOT_FRIENDS                = "NOT_FRIENDS"
    INVALID_STATUS             = "INVALID_STATUS"
    INVITE_LIMIT               = "INVITE_LIMIT"
    OWN_INVITE                 = "OWN_INVITE"
    USERNAME_CHANGE_LIMIT      = "USERNAME_CHANGE_LIMIT"
    SELF_FRIENDSHIP            = "SELF_FRIENDSHIP"
    SELF_BLOCK                 = "SELF_BLOCK"
    SELF_IOU                   = "SELF_IOU"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    USERNAME_TAKEN             = "USERNAME_TAKEN"
    ALREADY_EXISTS             = "ALREADY_EXISTS"
    ALREADY_BLOCKED            = "ALREADY_BLOCKED"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    NOT_FOUND                  = "NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    FRIENDSHIP_NOT_FOUND       = "FRIENDSHIP_NOT_FOUND"
    FRIEND_REQUEST_NOT_FOUND   = "FRIEND_REQUEST_NOT_FOUND"
    IOU_NOT_FOUND              = "IOU_NOT_FOUND"
    RECURRING_NOT_FOUND        = "RECURRING_NOT_FOUND"
    INVITE_NOT_FOUND           = "INVITE_NOT_FOUND"
    NOTIFICATION_NOT_FOUND     = "NOTIFICATION_NOT_FOUND"
    BLOCK_NOT_FOUND            = "BLOCK_NOT_FOUND"

    # ── Gone (410): invite lifecycle ────────────────────────────────────────
    EXPIRED                    = "EXPIRED"
    CLAIMED                    = "CLAIMED"
    DECLINED                   = "DECLINED"
    CANCELLED                  = "CANCELLED"

    # ── Auth Errors ────────────────────────────────────────────────────────
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    USER_NOT_REGISTERED        = "USER_NOT_REGISTERED"    # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403
    BLOCKED                    = "BLOCKED"                # 403
    FRIEND_REQUESTS_DISABLED   = "FRIEND_REQUESTS_DISABLED"  # 403
    FEED_DISABLED              = "FEED_DISABLED"          # 403

    # ── HTTP-level Errors ──────────────────────────────────────────────────
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"     # 405

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Warnings are returned alongside a 2xx response in the `warnings` array.
# They do not block the request.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # Cumulative payments on an IOU exceed its recorded amount.
    # The payment is still recorded.
    OVERPAYMENT = "OVERPAYMENT"
