"""Decoding of the usage endpoint payload into typed reports."""

from __future__ import annotations

import json
import math
from datetime import datetime
from typing import Any, Optional, Union

from .models import Account, UsageDecodeError, UsageReport, UsageWindow

SESSION_KEY = "five_hour"
WEEKLY_KEY = "seven_day"
SECONDARY_KEY = "seven_day_sonnet"
FIXED_LIMIT = 100


def parse_reset_timestamp(value: Any) -> Optional[datetime]:
   """Parse an ISO-8601 timestamp with a UTC offset; None when unusable."""
   if not isinstance(value, str) or not value:
      return None
   try:
      parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
   except ValueError:
      return None
   if parsed.tzinfo is None:
      return None
   return parsed


def _decode_window(value: Any) -> Optional[UsageWindow]:
   if not isinstance(value, dict):
      return None
   raw = value.get("utilization")
   utilization = None
   # json accepts 1e400, Infinity and NaN; none of them is a usable percentage.
   if isinstance(raw, float) and not math.isfinite(raw):
      raw = None
   if isinstance(raw, (int, float)) and not isinstance(raw, bool):
      utilization = int(raw)
   return UsageWindow(utilization=utilization, resets_at=parse_reset_timestamp(value.get("resets_at")))


def decode_usage(body: Union[bytes, str]) -> Union[UsageReport, UsageDecodeError]:
   """
   Decode a usage response body.

   Missing windows are tolerated and come back as None. Only a body that is
   not a JSON object at all yields UsageDecodeError.
   """
   try:
      data = json.loads(body)
   except (TypeError, ValueError) as exc:
      return UsageDecodeError(reason=f"invalid JSON: {exc}")
   if not isinstance(data, dict):
      return UsageDecodeError(reason=f"expected JSON object, got {type(data).__name__}")

   return UsageReport(
      session=_decode_window(data.get(SESSION_KEY)),
      weekly=_decode_window(data.get(WEEKLY_KEY)),
      secondary=_decode_window(data.get(SECONDARY_KEY)),
   )


def apply_usage(account: Account, report: UsageReport):
   """Copy a decoded report onto the account, keeping prior values for gaps."""
   session = report.session
   if session is not None:
      if session.utilization is not None:
         account.session_usage = session.utilization
         account.session_limit = FIXED_LIMIT
      if session.resets_at is not None:
         account.session_resets_at = session.resets_at

   weekly = report.weekly
   if weekly is not None:
      if weekly.utilization is not None:
         account.weekly_usage = weekly.utilization
         account.weekly_limit = FIXED_LIMIT
      if weekly.resets_at is not None:
         account.weekly_resets_at = weekly.resets_at

   secondary = report.secondary
   if secondary is not None:
      account.has_secondary_metric = True
      if secondary.utilization is not None:
         account.secondary_usage = secondary.utilization
         account.secondary_limit = FIXED_LIMIT
      if secondary.resets_at is not None:
         account.secondary_resets_at = secondary.resets_at
   else:
      account.has_secondary_metric = False

   account.has_fetched_data = True
   account.error_message = None
