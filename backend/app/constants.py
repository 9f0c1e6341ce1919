"""
constants.py — Domain limits and enumerated values shared by schemas and services.
"""

from __future__ import annotations

from decimal import Decimal

# Amounts
MAX_AMOUNT = Decimal("999999.99")

# Invites
MAX_PENDING_INVITES = 5
INVITE_EXPIRY_DAYS = 7
INVITE_TOKEN_BYTES = 32

# Pagination
DEFAULT_FEED_LIMIT = 50
DEFAULT_NOTIFICATION_LIMIT = 20
MAX_NOTIFICATION_LIMIT = 100
DEFAULT_SEARCH_LIMIT = 20

# Usernames and names
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
FIRST_NAME_MIN_LENGTH = 1
FIRST_NAME_MAX_LENGTH = 20
USERNAME_CHANGE_COOLDOWN_DAYS = 30
MAX_USERNAME_SUGGESTIONS = 3

# Text fields
MAX_DESCRIPTION_LENGTH = 255
MAX_NOTES_LENGTH = 1000

# Profile settings
VALID_CURRENCIES = ("$", "🍺", "☕", "🍌", "🥤")
VALID_DATE_FORMATS = ("DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD")
VALID_TIME_FORMATS = ("12h", "24h")
