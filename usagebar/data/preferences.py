"""JSON-file key-value preferences store and global settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from filelock import FileLock

from ..constants import (
   HAS_SET_NOTIFICATIONS_KEY,
   NOTIFICATIONS_ENABLED_KEY,
   OPEN_AT_LOGIN_KEY,
   PREFERENCES_PATH,
)
from ..log import get_logger
from ..utils import atomic_write_json

logger = get_logger("preferences")

_MISSING = object()


class PreferencesStore:
   """
   Flat key-value store persisted as one JSON object.

   Values are cached in memory after the first read. Every write re-reads
   the file under a file lock, applies the change and replaces the file
   atomically, so writers in other processes are serialized and each write
   is a consistent full document.
   """

   def __init__(self, path: Path = PREFERENCES_PATH):
      self.path = path
      self._lock = FileLock(str(path.with_suffix(path.suffix + ".lock")), timeout=10)
      self._data: Optional[Dict[str, Any]] = None

   def _read_file(self) -> Dict[str, Any]:
      if not self.path.exists():
         return {}
      try:
         with open(self.path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
      except (OSError, ValueError) as exc:
         logger.warning("Preferences at %s are unreadable, starting empty: %s", self.path, exc)
         return {}
      if not isinstance(data, dict):
         logger.warning("Preferences at %s are not a JSON object, starting empty", self.path)
         return {}
      return data

   @property
   def data(self) -> Dict[str, Any]:
      if self._data is None:
         self._data = self._read_file()
      return self._data

   def reload(self):
      """Drop the in-memory cache so the next read hits the file."""
      self._data = None

   def contains(self, key: str) -> bool:
      return key in self.data

   def get(self, key: str, default: Any = None) -> Any:
      return self.data.get(key, default)

   def get_bool(self, key: str, default: bool = False) -> bool:
      value = self.data.get(key, _MISSING)
      if value is _MISSING:
         return default
      return bool(value)

   def set(self, key: str, value: Any):
      self.update({key: value})

   def update(self, values: Dict[str, Any], remove: tuple = ()):
      """Set and delete several keys in one atomic write."""
      self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
      with self._lock:
         data = self._read_file()
         data.update(values)
         for key in remove:
            data.pop(key, None)
         atomic_write_json(self.path, data)
         self._data = data

   def transform(self, key: str, func: Callable[[Any], Any]):
      """Replace one key with func(current value) while holding the file lock."""
      self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
      with self._lock:
         data = self._read_file()
         data[key] = func(data.get(key))
         atomic_write_json(self.path, data)
         self._data = data

   def delete(self, *keys: str):
      if not any(key in self.data for key in keys):
         return
      self.update({}, remove=keys)


class Settings:
   """Global settings stored alongside the accounts."""

   def __init__(self, preferences: PreferencesStore):
      self.preferences = preferences

   @property
   def notifications_enabled(self) -> bool:
      # First run defaults to enabled; the flag records that a default was chosen.
      if not self.preferences.get_bool(HAS_SET_NOTIFICATIONS_KEY):
         self.preferences.update({NOTIFICATIONS_ENABLED_KEY: True, HAS_SET_NOTIFICATIONS_KEY: True})
         return True
      return self.preferences.get_bool(NOTIFICATIONS_ENABLED_KEY, True)

   @notifications_enabled.setter
   def notifications_enabled(self, enabled: bool):
      self.preferences.update(
         {NOTIFICATIONS_ENABLED_KEY: bool(enabled), HAS_SET_NOTIFICATIONS_KEY: True}
      )

   @property
   def open_at_login(self) -> bool:
      return self.preferences.get_bool(OPEN_AT_LOGIN_KEY, False)

   @open_at_login.setter
   def open_at_login(self, enabled: bool):
      self.preferences.set(OPEN_AT_LOGIN_KEY, bool(enabled))
