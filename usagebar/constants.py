"""Shared constants for the usagebar package."""

from pathlib import Path

from .presentation.console import console

# Paths
USAGEBAR_DIR = Path.home() / ".usagebar"
PREFERENCES_PATH = USAGEBAR_DIR / "preferences.json"
LOCK_PATH = USAGEBAR_DIR / ".lock"
HEADERS_PATH = USAGEBAR_DIR / "headers.json"

# Remote service
SERVICE_URL = "https://claude.ai"
API_BASE_URL = f"{SERVICE_URL}/api"
ORG_COOKIE_KEY = "lastActiveOrg"
SESSION_COOKIE_KEY = "sessionKey"

# Preference keys
ACCOUNTS_KEY = "claude_accounts"
LEGACY_COOKIE_KEY = "claude_session_cookie"
LEGACY_THRESHOLD_KEY = "last_notified_threshold"
NOTIFICATIONS_ENABLED_KEY = "notifications_enabled"
HAS_SET_NOTIFICATIONS_KEY = "has_set_notifications"
OPEN_AT_LOGIN_KEY = "open_at_login"

# Account store
MAX_ACCOUNTS = 4
MIGRATED_ACCOUNT_NAME = "My Account"

# Polling and notifications
POLL_INTERVAL_SECONDS = 300
NOTIFICATION_THRESHOLDS = (25, 50, 75, 90)
FETCH_MAX_WORKERS = 8

# Per-account error strings
ERROR_NO_COOKIE = "No cookie set"
ERROR_NO_ORG = "Could not get org ID"
ERROR_NETWORK = "Network error"
ERROR_PARSE = "Parse error"
