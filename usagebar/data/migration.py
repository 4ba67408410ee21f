"""One-time upgrade from the single-cookie record to the account list."""

from __future__ import annotations

from ..constants import (
   ACCOUNTS_KEY,
   LEGACY_COOKIE_KEY,
   LEGACY_THRESHOLD_KEY,
   MIGRATED_ACCOUNT_NAME,
)
from ..core.models import Account, snap_threshold
from ..log import get_logger
from .preferences import PreferencesStore
from .store import encode_accounts

logger = get_logger("migration")


def migrate_legacy_account(preferences: PreferencesStore) -> bool:
   """
   Convert the legacy cookie record into the first stored account.

   Must run before AccountStore.load(). A no-op whenever the account list
   already exists, so it is safe to call on every start.

   Returns True if a migration was performed.
   """
   if preferences.contains(ACCOUNTS_KEY):
      return False

   cookie = preferences.get(LEGACY_COOKIE_KEY)
   if not isinstance(cookie, str) or not cookie.strip():
      return False

   logger.info("Migrating from single account format")
   account = Account(
      name=MIGRATED_ACCOUNT_NAME,
      credential=cookie.strip(),
      last_notified_threshold=snap_threshold(preferences.get(LEGACY_THRESHOLD_KEY, 0)),
   )
   preferences.update(
      {ACCOUNTS_KEY: encode_accounts([account])},
      remove=(LEGACY_COOKIE_KEY, LEGACY_THRESHOLD_KEY),
   )
   logger.info("Migration complete - created '%s'", account.name)
   return True
