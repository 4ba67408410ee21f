"""Top-level usage monitor tying the store, fetcher and notifications together."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..constants import MAX_ACCOUNTS, POLL_INTERVAL_SECONDS
from ..core.cookies import validate_new_cookie
from ..core.errors import AccountLimitReached, AccountNotFound
from ..core.models import Account, StatusSnapshot
from ..data.migration import migrate_legacy_account
from ..data.preferences import PreferencesStore, Settings
from ..data.store import EVENT_ADDED, EVENT_CLEARED, EVENT_REMOVED, AccountStore
from ..infrastructure.api import ClaudeWebAPI
from ..infrastructure.notify import send_notification
from ..log import get_logger
from .fetching import StatusListener, UsageFetcher
from .notifications import NotificationEngine, Notifier
from .organizations import OrganizationResolver

logger = get_logger("monitor")


class UsageMonitor:
    """
    Owns all account state for one process.

    Display code subscribes to status snapshots instead of reading fields of
    the monitor; a new snapshot is pushed after every applied fetch, every
    poll round and every removal.
    """

    def __init__(
        self,
        preferences: PreferencesStore,
        api=ClaudeWebAPI,
        notifier: Notifier = send_notification,
        max_accounts: int = MAX_ACCOUNTS,
    ):
        self.preferences = preferences
        self.settings = Settings(preferences)

        if migrate_legacy_account(preferences):
            logger.info("Upgraded legacy single-account preferences")

        self.store = AccountStore(preferences, max_accounts=max_accounts)
        self.store.load()

        self.notifications = NotificationEngine(self.store, self.settings, notifier)
        self.fetcher = UsageFetcher(
            self.store,
            resolver=OrganizationResolver(api),
            api=api,
            notifications=self.notifications,
            on_status=self._publish,
        )

        self.status = StatusSnapshot()
        self.is_loading = False
        self.last_updated: Optional[datetime] = None
        self._subscribers: List[StatusListener] = []
        self.store.subscribe(self._on_store_event)

    # Observers
    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Receive every new StatusSnapshot; returns an unsubscribe callable."""
        self._subscribers.append(listener)

        def unsubscribe():
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: StatusSnapshot):
        self.status = snapshot
        for listener in list(self._subscribers):
            listener(snapshot)

    def _on_store_event(self, event: str, account: Optional[Account]):
        if event == EVENT_ADDED and account is not None:
            self.fetcher.fetch_one(account.id)
        elif event in (EVENT_REMOVED, EVENT_CLEARED):
            self.fetcher.publish_status()

    # Accounts
    @property
    def accounts(self) -> List[Account]:
        return self.store.all()

    def resolve(self, identifier: str) -> Account:
        """
        Retrieve account by identifier.

        Raises:
           AccountNotFound: If no match found
        """
        account = self.store.get_account_by_identifier(identifier)
        if account is None:
            raise AccountNotFound(f"No account found for: {identifier}")
        return account

    def add_account(self, name: Optional[str], cookie: str) -> Account:
        """
        Validate and link a new account, then fetch its usage once.

        Raises:
           AccountLimitReached: If the account cap is reached
           InvalidCredentials: If the cookie is malformed or already linked
        """
        self.store.refresh()
        if self.store.is_full:
            raise AccountLimitReached(f"Maximum {self.store.max_accounts} accounts allowed")
        cookie = validate_new_cookie(cookie, (acc.credential for acc in self.store.all()))
        account = self.store.add(name, cookie)
        if account is None:
            raise AccountLimitReached(f"Maximum {self.store.max_accounts} accounts allowed")
        return account

    def update_account(
        self,
        identifier: str,
        name: Optional[str] = None,
        cookie: Optional[str] = None,
        color_hex: Optional[str] = None,
    ) -> Account:
        account = self.resolve(identifier)
        self.store.update(account.id, name=name, credential=cookie, color_hex=color_hex)
        return account

    def remove_account(self, identifier: str) -> Account:
        account = self.resolve(identifier)
        self.store.remove(account.id)
        return account

    def clear_all(self):
        self.store.clear()

    # Polling
    def fetch_all(self) -> Dict[str, bool]:
        self.is_loading = True
        try:
            results = self.fetcher.fetch_all()
        finally:
            self.is_loading = False
        self.last_updated = datetime.now(timezone.utc)
        return results

    def fetch_one(self, identifier: str) -> bool:
        return self.fetcher.fetch_one(self.resolve(identifier).id)

    def run(
        self,
        interval: float = POLL_INTERVAL_SECONDS,
        rounds: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Poll on a fixed interval; runs forever unless rounds is given.

        Before every round after the first, accounts edited by other
        processes are merged in.
        """
        completed = 0
        while rounds is None or completed < rounds:
            if completed:
                self.store.refresh()
            self.fetch_all()
            completed += 1
            if rounds is not None and completed >= rounds:
                break
            sleep(interval)
