"""Core domain models for usagebar."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..constants import NOTIFICATION_THRESHOLDS

PERSISTENT_FIELDS = ("id", "name", "credential", "last_notified_threshold", "color_hex")

HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}")


def _percent(usage: int, limit: int) -> float:
   return usage / limit if limit > 0 else 0.0


def is_hex_color(value: Any) -> bool:
   """True for "#RRGGBB" strings, the only colour form accounts store."""
   return isinstance(value, str) and HEX_COLOR_RE.fullmatch(value) is not None


def snap_threshold(value: Any) -> int:
   """Clamp a stored threshold to the highest ladder value not above it."""
   try:
      value = int(value)
   except (TypeError, ValueError):
      return 0
   return max((t for t in NOTIFICATION_THRESHOLDS if t <= value), default=0)


@dataclass
class Account:
   """
   Linked account with persistent identity and volatile usage state.

   Only PERSISTENT_FIELDS are written to the preferences file. Everything
   else is rebuilt by polling and comes back at its default after a reload.
   """

   name: str
   credential: str = ""
   id: str = field(default_factory=lambda: str(uuid.uuid4()))
   last_notified_threshold: int = 0
   color_hex: Optional[str] = None

   # Volatile state (not persisted)
   session_usage: int = 0
   session_limit: int = 100
   weekly_usage: int = 0
   weekly_limit: int = 100
   secondary_usage: int = 0
   secondary_limit: int = 100
   session_resets_at: Optional[datetime] = None
   weekly_resets_at: Optional[datetime] = None
   secondary_resets_at: Optional[datetime] = None
   has_secondary_metric: bool = False
   has_fetched_data: bool = False
   is_loading: bool = False
   error_message: Optional[str] = None
   last_updated: Optional[datetime] = None

   @classmethod
   def from_dict(cls, data: Dict[str, Any]) -> Account:
      """Build from a persisted record; raises KeyError/ValueError when malformed."""
      account_id = data["id"]
      if not isinstance(account_id, str) or not account_id:
         raise ValueError("account id must be a non-empty string")
      return cls(
         id=account_id,
         name=str(data.get("name") or ""),
         credential=str(data.get("credential") or ""),
         last_notified_threshold=snap_threshold(data.get("last_notified_threshold", 0)),
         color_hex=data.get("color_hex") if is_hex_color(data.get("color_hex")) else None,
      )

   def to_dict(self) -> Dict[str, Any]:
      """Serialize persistent fields only."""
      return {name: getattr(self, name) for name in PERSISTENT_FIELDS}

   def reset_usage(self):
      """Drop all fetched state, e.g. after the credential changed."""
      defaults = Account(name=self.name)
      for name in (
         "session_usage",
         "session_limit",
         "weekly_usage",
         "weekly_limit",
         "secondary_usage",
         "secondary_limit",
         "session_resets_at",
         "weekly_resets_at",
         "secondary_resets_at",
         "has_secondary_metric",
         "has_fetched_data",
         "is_loading",
         "error_message",
         "last_updated",
      ):
         setattr(self, name, getattr(defaults, name))

   @property
   def is_configured(self) -> bool:
      return bool(self.credential)

   @property
   def session_percentage(self) -> float:
      return _percent(self.session_usage, self.session_limit)

   @property
   def weekly_percentage(self) -> float:
      return _percent(self.weekly_usage, self.weekly_limit)

   @property
   def secondary_percentage(self) -> float:
      return _percent(self.secondary_usage, self.secondary_limit)

   @property
   def session_percent(self) -> int:
      """Integer session percentage used for thresholds and the status signal."""
      if self.session_limit <= 0:
         return 0
      return self.session_usage * 100 // self.session_limit


@dataclass(frozen=True)
class UsageWindow:
   """One decoded quota window; None means the field was absent or unusable."""

   utilization: Optional[int] = None
   resets_at: Optional[datetime] = None


@dataclass(frozen=True)
class UsageReport:
   """Successfully decoded usage payload."""

   session: Optional[UsageWindow] = None
   weekly: Optional[UsageWindow] = None
   secondary: Optional[UsageWindow] = None


@dataclass(frozen=True)
class UsageDecodeError:
   """Payload could not be interpreted as a JSON object."""

   reason: str


@dataclass(frozen=True)
class PendingFetch:
   """An issued request, tagged with the credential and token it was issued with."""

   account_id: str
   credential: str
   token: int


@dataclass(frozen=True)
class FetchOutcome:
   """Result of the network half of a fetch; exactly one of body/error is set."""

   body: Optional[bytes] = None
   error: Optional[str] = None
   status_code: Optional[int] = None

   @property
   def ok(self) -> bool:
      return self.error is None and self.body is not None


@dataclass(frozen=True)
class StatusSnapshot:
   """Aggregated display signal pushed to subscribers."""

   percentage: int = 0
   per_account: List[Tuple[str, int]] = field(default_factory=list)

   @property
   def has_data(self) -> bool:
      return bool(self.per_account)
