"""Per-account usage polling."""

from __future__ import annotations

import itertools
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

from ..constants import ERROR_NETWORK, ERROR_NO_COOKIE, ERROR_NO_ORG, ERROR_PARSE, FETCH_MAX_WORKERS
from ..core.models import FetchOutcome, PendingFetch, StatusSnapshot, UsageDecodeError
from ..core.parsing import apply_usage, decode_usage
from ..core.status import compute_status
from ..data.store import AccountStore
from ..infrastructure.api import ClaudeWebAPI
from ..log import get_logger
from .notifications import NotificationEngine
from .organizations import OrganizationResolver

logger = get_logger("fetching")

StatusListener = Callable[[StatusSnapshot], None]


class UsageFetcher:
   """
   Drives the fetch pipeline for each account.

   A fetch is split into begin (state mutation, caller thread), request
   (network only, any thread) and complete (state mutation, caller thread).
   Only the most recently issued request for an account may apply its
   result, and only while the account still exists with the credential the
   request was issued with. Anything else is dropped on completion.
   """

   def __init__(
      self,
      store: AccountStore,
      resolver: Optional[OrganizationResolver] = None,
      api=ClaudeWebAPI,
      notifications: Optional[NotificationEngine] = None,
      on_status: Optional[StatusListener] = None,
      max_workers: int = FETCH_MAX_WORKERS,
   ):
      self.store = store
      self.api = api
      self.resolver = resolver or OrganizationResolver(api)
      self.notifications = notifications
      self.on_status = on_status
      self.max_workers = max_workers
      self._tokens = itertools.count(1)
      self._latest: Dict[str, int] = {}

   def begin(self, account_id: str) -> Optional[PendingFetch]:
      """Mark the account as loading and issue a request token."""
      account = self.store.get(account_id)
      if account is None:
         return None

      if not account.credential:
         account.error_message = ERROR_NO_COOKIE
         account.is_loading = False
         return None

      account.is_loading = True
      account.error_message = None
      token = next(self._tokens)
      self._latest[account_id] = token
      return PendingFetch(account_id=account_id, credential=account.credential, token=token)

   def request(self, pending: PendingFetch) -> FetchOutcome:
      """Network half of a fetch. Touches no shared state."""
      org_id = self.resolver.resolve(pending.credential)
      if not org_id:
         return FetchOutcome(error=ERROR_NO_ORG)

      logger.debug("Fetching usage for account %s (org %s)", pending.account_id, org_id)
      try:
         response = self.api.get_usage(org_id, pending.credential)
      except requests.RequestException as exc:
         logger.warning("Network error for account %s: %s", pending.account_id, exc)
         return FetchOutcome(error=ERROR_NETWORK)

      logger.debug("Account %s status: %s", pending.account_id, response.status_code)
      if response.status_code != 200:
         return FetchOutcome(error=f"HTTP {response.status_code}", status_code=response.status_code)
      return FetchOutcome(body=response.content, status_code=response.status_code)

   def complete(self, pending: PendingFetch, outcome: FetchOutcome) -> bool:
      """Apply a finished request; returns False when the result was discarded."""
      account = self.store.get(pending.account_id)
      if account is None:
         self._latest.pop(pending.account_id, None)
         logger.debug("Account %s was removed during fetch, ignoring result", pending.account_id)
         return False

      if account.credential != pending.credential:
         logger.debug("Credential of account %s changed during fetch, ignoring result", account.id)
         return False

      if self._latest.get(account.id) != pending.token:
         logger.debug("Newer fetch issued for account %s, ignoring stale result", account.id)
         return False

      account.is_loading = False

      if not outcome.ok:
         account.error_message = outcome.error
         logger.warning("Fetch failed for account '%s': %s", account.name, outcome.error)
      else:
         try:
            result = decode_usage(outcome.body)
            if not isinstance(result, UsageDecodeError):
               apply_usage(account, result)
         except (TypeError, ValueError, OverflowError) as exc:
            result = UsageDecodeError(reason=str(exc))

         if isinstance(result, UsageDecodeError):
            account.error_message = ERROR_PARSE
            logger.warning("Parse error for account '%s': %s", account.name, result.reason)
         else:
            account.last_updated = datetime.now(timezone.utc)
            logger.debug(
               "Account '%s': session %d%%, weekly %d%%",
               account.name,
               account.session_usage,
               account.weekly_usage,
            )
            if self.notifications is not None:
               self.notifications.evaluate(account.id)

      self.publish_status()
      return True

   def fetch_one(self, account_id: str) -> bool:
      """Fetch a single account synchronously on the calling thread."""
      pending = self.begin(account_id)
      if pending is None:
         self.publish_status()
         return False
      return self.complete(pending, self.request(pending))

   def fetch_at(self, index: int) -> bool:
      """Positional variant, for callers that just appended an account."""
      account = self.store.get_at(index)
      if account is None:
         return False
      return self.fetch_one(account.id)

   def fetch_all(self) -> Dict[str, bool]:
      """
      Fetch every account concurrently.

      Requests run in a thread pool; results are applied here, one at a time,
      in completion order. One account's failure never affects the others.
      """
      pending: List[PendingFetch] = []
      for account_id in self.store.ids():
         issued = self.begin(account_id)
         if issued is not None:
            pending.append(issued)

      results: Dict[str, bool] = {}
      if pending:
         with ThreadPoolExecutor(max_workers=min(len(pending), self.max_workers)) as executor:
            future_map = {executor.submit(self.request, item): item for item in pending}

            for future in as_completed(future_map):
               item = future_map[future]
               try:
                  outcome = future.result()
               except Exception as exc:
                  logger.warning("Unexpected error fetching account %s: %s", item.account_id, exc)
                  outcome = FetchOutcome(error=ERROR_NETWORK)
               try:
                  results[item.account_id] = self.complete(item, outcome)
               except Exception as exc:
                  logger.warning("Could not apply result for account %s: %s", item.account_id, exc)
                  results[item.account_id] = self._abandon(item)

      # Merges notification state into the stored list without resurrecting
      # accounts another process removed meanwhile.
      self.store.save_thresholds()
      self.publish_status()
      return results

   def _abandon(self, pending: PendingFetch) -> bool:
      account = self.store.get(pending.account_id)
      if account is not None and self._latest.get(account.id) == pending.token:
         account.is_loading = False
         account.error_message = ERROR_PARSE
      return False

   def publish_status(self) -> StatusSnapshot:
      snapshot = compute_status(self.store.all())
      if self.on_status is not None:
         self.on_status(snapshot)
      return snapshot
