"""Reduction of all accounts into the single status-bar signal."""

from __future__ import annotations

from typing import Iterable

from .models import Account, StatusSnapshot


def compute_status(accounts: Iterable[Account]) -> StatusSnapshot:
   """Max session percentage over accounts that have fetched data at least once."""
   per_account = [(acc.id, acc.session_percent) for acc in accounts if acc.has_fetched_data]
   if not per_account:
      return StatusSnapshot()
   return StatusSnapshot(
      percentage=max(percent for _, percent in per_account),
      per_account=per_account,
   )
