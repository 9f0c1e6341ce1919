"""
tests/unit/test_validation_schemas.py — Unit tests for the marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Every schema rejects invalid input with a ValidationError on the right field
  - Amount rules (range, 2 decimal places) raise registered error codes
  - Friendship, blocking and status rules are NOT tested here; they live in services

No database, no Flask application context: schemas inherit from
marshmallow.Schema directly (see schemas/common.py).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from marshmallow import ValidationError

from backend.app.errors import ErrorCode
from backend.app.schemas.feed_schema import ReactionSchema
from backend.app.schemas.friend_schema import FriendRequestSchema, UserSearchQuerySchema
from backend.app.schemas.invite_schema import CreateInviteSchema
from backend.app.schemas.iou_schema import (
    AddPaymentSchema,
    CreateIOUSchema,
    CreateUOMeSchema,
    ListIOUsQuerySchema,
)
from backend.app.schemas.notification_schema import NotificationQuerySchema
from backend.app.schemas.profile_schema import CompleteProfileSchema, UpdateSettingsSchema
from backend.app.schemas.recurring_schema import CreateRecurringSchema, UpdateRecurringSchema


# ═══════════════════════════════════════════════════════════════════════════
# CreateIOUSchema / CreateUOMeSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateIOUSchema:

    def _load(self, data: dict):
        return CreateIOUSchema().load(data)

    def test_minimal_payload_fills_defaults(self):
        result = self._load({"creditor_id": 2, "description": "Pizza"})
        assert result["creditor_id"] == 2
        assert result["amount"] is None
        assert result["visibility"] is None
        assert result["due_date"] is None

    def test_amount_returns_decimal(self):
        result = self._load({"creditor_id": 2, "description": "Pizza", "amount": "12.50"})
        assert result["amount"] == Decimal("12.50")
        assert isinstance(result["amount"], Decimal)

    def test_zero_amount_allowed(self):
        assert self._load({"creditor_id": 2, "description": "x", "amount": "0"})["amount"] == Decimal("0")

    def test_max_amount_allowed(self):
        result = self._load({"creditor_id": 2, "description": "x", "amount": "999999.99"})
        assert result["amount"] == Decimal("999999.99")

    @pytest.mark.parametrize("amount", ["-0.01", "1000000", "twelve"])
    def test_bad_amount_raises_invalid_amount(self, amount):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "x", "amount": amount})
        assert exc.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT]

    def test_three_decimals_raise_precision_code(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "x", "amount": "10.123"})
        assert exc.value.messages["amount"] == [ErrorCode.INVALID_AMOUNT_PRECISION]

    def test_blank_description_is_missing(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "   "})
        assert "description" in exc.value.messages

    def test_description_too_long(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "x" * 256})
        assert "description" in exc.value.messages

    def test_string_creditor_id_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": "2", "description": "x"})
        assert "creditor_id" in exc.value.messages

    def test_bad_visibility_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "x", "visibility": "friends"})
        assert "visibility" in exc.value.messages

    def test_date_only_due_date_is_utc_midnight(self):
        result = self._load({"creditor_id": 2, "description": "x", "due_date": "2026-11-01"})
        assert result["due_date"] == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_zulu_due_date(self):
        result = self._load({"creditor_id": 2, "description": "x", "due_date": "2026-11-01T18:30:00Z"})
        assert result["due_date"] == datetime(2026, 11, 1, 18, 30, tzinfo=timezone.utc)

    def test_garbage_due_date_rejected(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"creditor_id": 2, "description": "x", "due_date": "next tuesday"})
        assert "due_date" in exc.value.messages

    def test_unknown_keys_dropped(self):
        result = self._load({"creditor_id": 2, "description": "x", "status": "paid"})
        assert "status" not in result

    def test_uome_requires_debtor_id(self):
        with pytest.raises(ValidationError) as exc:
            CreateUOMeSchema().load({"creditor_id": 2, "description": "x"})
        assert "debtor_id" in exc.value.messages


class TestAddPaymentSchema:

    def test_amount_optional(self):
        result = AddPaymentSchema().load({"description": "Bought lunch"})
        assert result["amount"] is None

    def test_description_required(self):
        with pytest.raises(ValidationError) as exc:
            AddPaymentSchema().load({"amount": "5.00"})
        assert "description" in exc.value.messages


class TestListIOUsQuerySchema:

    def test_defaults(self):
        assert ListIOUsQuerySchema().load({}) == {"filter": "all", "status": None}

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc:
            ListIOUsQuerySchema().load({"status": "overdue"})
        assert "status" in exc.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Profile schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCompleteProfileSchema:

    def _load(self, data: dict):
        return CompleteProfileSchema().load(data)

    def test_normalises_and_capitalises(self):
        result = self._load({"first_name": " mARIA ", "username": " Maria.Lopez "})
        assert result == {"first_name": "Maria", "username": "maria.lopez"}

    def test_accented_first_name_allowed(self):
        assert self._load({"first_name": "josé", "username": "jose"})["first_name"] == "José"

    @pytest.mark.parametrize("username", ["ab", "a" * 21, "has space", "dash-name", ".lead", "trail.", "two..dots"])
    def test_bad_usernames(self, username):
        with pytest.raises(ValidationError) as exc:
            self._load({"first_name": "Ann", "username": username})
        assert "username" in exc.value.messages

    def test_first_name_too_long(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"first_name": "a" * 21, "username": "ann"})
        assert "first_name" in exc.value.messages


class TestUpdateSettingsSchema:

    def test_absent_keys_stay_absent(self):
        assert UpdateSettingsSchema().load({"time_format": "24h"}) == {"time_format": "24h"}

    def test_blank_venmo_handle_clears_it(self):
        assert UpdateSettingsSchema().load({"venmo_handle": ""}) == {"venmo_handle": None}

    def test_bad_currency_rejected(self):
        with pytest.raises(ValidationError) as exc:
            UpdateSettingsSchema().load({"default_currency": "€"})
        assert "default_currency" in exc.value.messages

    def test_emoji_currency_allowed(self):
        assert UpdateSettingsSchema().load({"default_currency": "🍺"})["default_currency"] == "🍺"


# ═══════════════════════════════════════════════════════════════════════════
# Recurring schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateRecurringSchema:

    def _load(self, data: dict):
        base = {"description": "Rent", "frequency": "weekly", "day_of_week": 0}
        base.update(data)
        return CreateRecurringSchema().load(base)

    def test_valid_weekly(self):
        result = self._load({"debtor_id": 2})
        assert result["day_of_week"] == 0
        assert result["visibility"] == "private"

    def test_valid_monthly(self):
        result = self._load({"creditor_id": 2, "frequency": "monthly", "day_of_month": 31})
        assert result["day_of_month"] == 31

    def test_exactly_one_party(self):
        with pytest.raises(ValidationError) as exc:
            self._load({})
        assert "_schema" in exc.value.messages

        with pytest.raises(ValidationError):
            self._load({"debtor_id": 2, "creditor_id": 3})

    def test_monthly_needs_day_of_month(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"debtor_id": 2, "frequency": "monthly"})
        assert "day_of_month" in exc.value.messages

    def test_bad_frequency(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"debtor_id": 2, "frequency": "daily"})
        assert "frequency" in exc.value.messages

    def test_day_of_month_range(self):
        with pytest.raises(ValidationError) as exc:
            self._load({"debtor_id": 2, "frequency": "monthly", "day_of_month": 32})
        assert "day_of_month" in exc.value.messages


class TestUpdateRecurringSchema:

    def test_amount_not_defaulted(self):
        assert UpdateRecurringSchema().load({"is_active": False}) == {"is_active": False}

    def test_amount_can_be_cleared(self):
        assert UpdateRecurringSchema().load({"amount": None}) == {"amount": None}


# ═══════════════════════════════════════════════════════════════════════════
# Small schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateInviteSchema:

    def test_valid(self):
        result = CreateInviteSchema().load({
            "type": "iou",
            "description": "Tickets",
            "invitee_email": "dana@example.com",
        })
        assert result["type"] == "iou"
        assert result["invitee_name"] is None

    def test_bad_email(self):
        with pytest.raises(ValidationError) as exc:
            CreateInviteSchema().load({"type": "iou", "description": "x", "invitee_email": "nope"})
        assert "invitee_email" in exc.value.messages

    def test_type_required(self):
        with pytest.raises(ValidationError) as exc:
            CreateInviteSchema().load({"description": "x"})
        assert "type" in exc.value.messages


class TestQueryAndSmallSchemas:

    def test_notification_query_parses_strings(self):
        assert NotificationQuerySchema().load({"limit": "5", "unread_only": "true"}) == {
            "limit": 5,
            "unread_only": True,
        }

    def test_notification_query_defaults(self):
        assert NotificationQuerySchema().load({}) == {"limit": 20, "unread_only": False}

    def test_search_query_length(self):
        with pytest.raises(ValidationError) as exc:
            UserSearchQuerySchema().load({"q": "x" * 101})
        assert "q" in exc.value.messages

    def test_friend_request_needs_positive_id(self):
        with pytest.raises(ValidationError) as exc:
            FriendRequestSchema().load({"addressee_id": 0})
        assert "addressee_id" in exc.value.messages

    def test_reaction_type(self):
        assert ReactionSchema().load({"reaction_type": "down"}) == {"reaction_type": "down"}
        with pytest.raises(ValidationError):
            ReactionSchema().load({"reaction_type": "meh"})
