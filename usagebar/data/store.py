"""Ordered, capped collection of linked accounts backed by the preferences store."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ..constants import (
   ACCOUNTS_KEY,
   LEGACY_COOKIE_KEY,
   LEGACY_THRESHOLD_KEY,
   MAX_ACCOUNTS,
)
from ..core.models import Account, is_hex_color
from ..log import get_logger
from .preferences import PreferencesStore

logger = get_logger("store")

StoreListener = Callable[[str, Optional[Account]], None]

EVENT_ADDED = "added"
EVENT_UPDATED = "updated"
EVENT_REMOVED = "removed"
EVENT_CLEARED = "cleared"


def encode_accounts(accounts: List[Account]) -> List[Dict]:
   return [account.to_dict() for account in accounts]


def decode_accounts(records) -> List[Account]:
   """Decode a persisted list; raises ValueError if any record is malformed."""
   if not isinstance(records, list):
      raise ValueError("accounts record must be a list")
   accounts: List[Account] = []
   seen = set()
   for record in records:
      if not isinstance(record, dict):
         raise ValueError("account entry must be an object")
      try:
         account = Account.from_dict(record)
      except KeyError as exc:
         raise ValueError(f"account entry missing {exc}") from exc
      if account.id in seen:
         raise ValueError(f"duplicate account id {account.id}")
      seen.add(account.id)
      accounts.append(account)
   return accounts


class AccountStore:
   """
   Sole owner of the account collection.

   Callers address accounts by id. Positions are only stable until the next
   add/remove, so anything that outlives a single call (in-flight fetches,
   notification checks) must re-resolve the id.
   """

   def __init__(self, preferences: PreferencesStore, max_accounts: int = MAX_ACCOUNTS):
      self.preferences = preferences
      self.max_accounts = max_accounts
      self._accounts: List[Account] = []
      self._listeners: List[StoreListener] = []

   # Persistence
   def load(self):
      """Load accounts from preferences; an undecodable record loads as empty."""
      records = self.preferences.get(ACCOUNTS_KEY)
      if records is None:
         self._accounts = []
         return
      try:
         self._accounts = decode_accounts(records)[: self.max_accounts]
      except ValueError as exc:
         logger.warning("Could not decode stored accounts, starting empty: %s", exc)
         self._accounts = []
      logger.debug("Loaded %d accounts", len(self._accounts))

   def save(self):
      """Overwrite the stored collection with the current in-memory one."""
      self.preferences.set(ACCOUNTS_KEY, encode_accounts(self._accounts))
      logger.debug("Saved %d accounts", len(self._accounts))

   def _persist(self, merge: Callable[[List[Account]], List[Account]]):
      """
      Rewrite the stored list as merge(stored) under the preferences lock.

      Other processes may have added or removed accounts since this store
      was loaded; merging into what is on disk keeps their changes.
      """

      def apply(records):
         try:
            stored = decode_accounts(records if records is not None else [])
         except ValueError as exc:
            logger.warning("Replacing undecodable stored accounts: %s", exc)
            stored = []
         return encode_accounts(merge(stored))

      self.preferences.transform(ACCOUNTS_KEY, apply)

   def save_thresholds(self):
      """Write notification state of known accounts into the stored list."""
      thresholds = {acc.id: acc.last_notified_threshold for acc in self._accounts}

      def merge(stored: List[Account]) -> List[Account]:
         for record in stored:
            if record.id in thresholds:
               record.last_notified_threshold = thresholds[record.id]
         return stored

      self._persist(merge)

   # Observers
   def subscribe(self, listener: StoreListener) -> Callable[[], None]:
      """Register a listener for structural changes; returns an unsubscribe callable."""
      self._listeners.append(listener)

      def unsubscribe():
         if listener in self._listeners:
            self._listeners.remove(listener)

      return unsubscribe

   def _emit(self, event: str, account: Optional[Account]):
      for listener in list(self._listeners):
         listener(event, account)

   # Reads
   def all(self) -> List[Account]:
      """Accounts in insertion order (a copy of the list, sharing the objects)."""
      return list(self._accounts)

   def ids(self) -> List[str]:
      return [account.id for account in self._accounts]

   def get(self, account_id: str) -> Optional[Account]:
      for account in self._accounts:
         if account.id == account_id:
            return account
      return None

   def get_at(self, index: int) -> Optional[Account]:
      """Positional lookup for call sites that just appended an account."""
      if 0 <= index < len(self._accounts):
         return self._accounts[index]
      return None

   def get_account_by_identifier(self, identifier: str) -> Optional[Account]:
      """Retrieve account by 1-based position, id, unique id prefix, or name."""
      if identifier.isdigit():
         account = self.get_at(int(identifier) - 1)
         if account:
            return account

      account = self.get(identifier)
      if account:
         return account

      for acc in self._accounts:
         if acc.name == identifier:
            return acc

      prefixed = [acc for acc in self._accounts if acc.id.startswith(identifier)]
      if len(prefixed) == 1:
         return prefixed[0]
      return None

   def __len__(self) -> int:
      return len(self._accounts)

   @property
   def is_full(self) -> bool:
      return len(self._accounts) >= self.max_accounts

   # Mutations
   def normalize_name(self, name: Optional[str]) -> str:
      name = (name or "").strip()
      return name or f"Account {len(self._accounts) + 1}"

   def add(self, name: Optional[str], credential: str) -> Optional[Account]:
      """Append a new account; returns None without changes when at capacity."""
      self.refresh()
      if self.is_full:
         logger.info("Maximum %d accounts allowed, ignoring add", self.max_accounts)
         return None

      account = Account(name=self.normalize_name(name), credential=credential.strip())
      self._accounts.append(account)
      self._persist(lambda stored: stored + [account])
      logger.info("Added account '%s'", account.name)
      self._emit(EVENT_ADDED, account)
      return account

   def update(
      self,
      account_id: str,
      name: Optional[str] = None,
      credential: Optional[str] = None,
      color_hex: Optional[str] = None,
   ) -> Optional[Account]:
      """Edit an account; a changed credential discards all fetched state."""
      account = self.get(account_id)
      if account is None:
         return None

      if name is not None and name.strip():
         account.name = name.strip()

      if credential is not None:
         credential = credential.strip()
         if credential and credential != account.credential:
            account.credential = credential
            account.reset_usage()

      if color_hex is not None:
         if not color_hex:
            account.color_hex = None
         elif is_hex_color(color_hex):
            account.color_hex = color_hex
         else:
            logger.warning("Ignoring invalid colour %r for account '%s'", color_hex, account.name)

      self._persist(lambda stored: [account if acc.id == account_id else acc for acc in stored])
      logger.info("Updated account '%s'", account.name)
      self._emit(EVENT_UPDATED, account)
      return account

   def remove(self, account_id: str) -> Optional[Account]:
      account = self.get(account_id)
      if account is None:
         return None

      self._accounts = [acc for acc in self._accounts if acc.id != account_id]
      self._persist(lambda stored: [acc for acc in stored if acc.id != account_id])
      logger.info("Removed account '%s'", account.name)
      self._emit(EVENT_REMOVED, account)
      return account

   def clear(self):
      """Forget every account and any legacy single-cookie record."""
      self._accounts = []
      self.preferences.delete(ACCOUNTS_KEY, LEGACY_COOKIE_KEY, LEGACY_THRESHOLD_KEY)
      logger.info("Cleared all accounts")
      self._emit(EVENT_CLEARED, None)

   def refresh(self):
      """
      Merge accounts written by another process since the last load.

      Accounts that still exist keep their fetched state unless their
      credential changed; notification state in memory wins.
      """
      self.preferences.reload()
      try:
         stored = decode_accounts(self.preferences.get(ACCOUNTS_KEY) or [])
      except ValueError as exc:
         logger.warning("Ignoring undecodable stored accounts during refresh: %s", exc)
         return

      current = {acc.id: acc for acc in self._accounts}
      merged: List[Account] = []
      for incoming in stored[: self.max_accounts]:
         existing = current.get(incoming.id)
         if existing is None:
            merged.append(incoming)
            continue
         existing.name = incoming.name
         existing.color_hex = incoming.color_hex
         if incoming.credential != existing.credential:
            existing.credential = incoming.credential
            existing.reset_usage()
         merged.append(existing)
      self._accounts = merged
