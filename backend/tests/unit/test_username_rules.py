"""
tests/unit/test_username_rules.py — Username rules, derivation and suggestions.

No database: lookups go through a MagicMock session.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from backend.app.services import auth_service, profile_service
from backend.app.utils.validation import (
    capitalize_first_name,
    first_name_error,
    normalize_username,
    username_error,
)


# ═══════════════════════════════════════════════════════════════════════════
# utils/validation.py
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("username", ["abc", "a_b.c", "user123", "x" * 20, "a.b.c"])
def test_valid_usernames(username):
    assert username_error(username) is None


@pytest.mark.parametrize("username, fragment", [
    ("ab", "3-20"),
    ("x" * 21, "3-20"),
    ("Upper", "lowercase"),
    ("emoji🙂", "lowercase"),
    (".abc", "period"),
    ("abc.", "period"),
    ("a..b", "period"),
])
def test_invalid_usernames(username, fragment):
    assert fragment in username_error(username)


def test_normalize_username():
    assert normalize_username("  MiXeD.Case ") == "mixed.case"


def test_first_name_rules():
    assert first_name_error("Zoë") is None
    assert first_name_error("") is not None
    assert "letters" in first_name_error("Mary-Jane")
    assert capitalize_first_name("mCDONALD") == "Mcdonald"


# ═══════════════════════════════════════════════════════════════════════════
# auth_service username derivation
# ═══════════════════════════════════════════════════════════════════════════

def test_to_base36():
    assert auth_service._to_base36(0) == "0"
    assert auth_service._to_base36(35) == "z"
    assert auth_service._to_base36(36) == "10"


@pytest.mark.parametrize("email, uid, expected", [
    ("Jane.Doe+tag@example.com", "uid", "jane.doetag"),
    ("..odd..name..@example.com", "uid", "odd.name"),
    ("jo@example.com", "uid", "jo_"),
    ("@example.com", "AbCdEfGhIj", "user_abcdefgh"),
    (None, "k9", "user_k9"),
    ("a-very-long-local-part-indeed@example.com", "uid", "averylonglocalpartin"),
])
def test_derive_base_username(email, uid, expected):
    assert auth_service.derive_base_username(email, uid) == expected


def test_unique_username_keeps_free_base():
    session = MagicMock()
    session.execute.return_value.scalar_one_or_none.return_value = None

    now = datetime(2026, 10, 16, tzinfo=timezone.utc)
    assert auth_service._unique_username("alice", session, now) == "alice"


def test_unique_username_appends_timestamp_suffix():
    session = MagicMock()
    session.execute.return_value.scalar_one_or_none.return_value = 1

    now = datetime(2026, 10, 16, tzinfo=timezone.utc)
    suffix = "_" + auth_service._to_base36(int(now.timestamp() * 1000))
    result = auth_service._unique_username("averylonglocalpartin", session, now)

    assert result.endswith(suffix)
    assert len(result) == 20


# ═══════════════════════════════════════════════════════════════════════════
# profile_service suggestions and availability
# ═══════════════════════════════════════════════════════════════════════════

def test_suggestions_are_first_three_free_candidates():
    session = MagicMock()
    session.execute.return_value.first.return_value = None

    suggestions = profile_service.suggest_usernames("bob", session, rng=random.Random(0))
    assert suggestions == ["bob1", "bob2", "bob_1"]


def test_suggestions_skip_taken_candidates():
    session = MagicMock()
    # bob1 and bob2 taken, everything after free.
    session.execute.return_value.first.side_effect = [(1,), (2,), None, None, None]

    suggestions = profile_service.suggest_usernames("bob", session, rng=random.Random(0))
    assert suggestions[:2] == ["bob_1", "bob_2"]
    assert len(suggestions) == 3


def test_suggestions_skip_malformed_candidates():
    session = MagicMock()
    session.execute.return_value.first.return_value = None

    # Every variation of a 20-character base is over the length limit.
    suggestions = profile_service.suggest_usernames("x" * 20, session, rng=random.Random(0))
    assert suggestions == []


def test_check_username_reports_format_problem_without_db():
    session = MagicMock()
    result = profile_service.check_username("A!", caller_id=1, session=session)

    assert result["available"] is False
    assert result["suggestions"] == []
    session.execute.assert_not_called()
