"""
utils/validation.py — Username and first-name rules.

Pure functions with no Flask or database dependency. The schemas use them to
reject bad input; profile_service uses them for the availability check,
which reports a problem instead of raising.
"""

from __future__ import annotations

import re

from backend.app.constants import (
    FIRST_NAME_MAX_LENGTH,
    FIRST_NAME_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)

_USERNAME_CHARS = re.compile(r"^[a-z0-9_.]+$")


def normalize_username(value: str) -> str:
    return value.strip().lower()


def username_error(username: str) -> str | None:
    """Returns a human-readable problem with `username`, or None if it is valid."""
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"
    if not _USERNAME_CHARS.match(username):
        return "Username can only contain lowercase letters, numbers, periods, and underscores"
    if username.startswith(".") or username.endswith(".") or ".." in username:
        return "Username cannot start or end with a period, or have consecutive periods"
    return None


def first_name_error(first_name: str) -> str | None:
    """Returns a human-readable problem with `first_name`, or None if it is valid."""
    if not FIRST_NAME_MIN_LENGTH <= len(first_name) <= FIRST_NAME_MAX_LENGTH:
        return f"First name must be {FIRST_NAME_MIN_LENGTH}-{FIRST_NAME_MAX_LENGTH} characters"
    # str.isalpha() accepts accented and non-Latin letters.
    if not first_name.isalpha():
        return "First name can only contain letters"
    return None


def capitalize_first_name(first_name: str) -> str:
    return first_name[:1].upper() + first_name[1:].lower()
