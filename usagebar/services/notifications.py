"""Per-account one-shot threshold notifications."""

from __future__ import annotations

from typing import Callable, List

from ..core.thresholds import step_thresholds
from ..data.preferences import Settings
from ..data.store import AccountStore
from ..infrastructure.notify import send_notification
from ..log import get_logger

logger = get_logger("notifications")

Notifier = Callable[[str, str], bool]


def alert_title(account_name: str) -> str:
    return f"Claude Usage Alert - {account_name}"


def alert_message(percentage: int) -> str:
    return f"You've reached {percentage}% of your 5-hour session limit"


class NotificationEngine:
    """
    Compares an account's session percentage with the threshold ladder.

    One notification is sent per band crossed on the way up; falling usage
    silently lowers the stored band. State changes are saved right away so a
    crash can at worst repeat one notification.
    """

    def __init__(self, store: AccountStore, settings: Settings, notifier: Notifier = send_notification):
        self.store = store
        self.settings = settings
        self.notifier = notifier

    def evaluate(self, account_id: str) -> List[int]:
        """Run the ladder for one account; returns the bands notified."""
        if not self.settings.notifications_enabled:
            return []

        account = self.store.get(account_id)
        if account is None:
            return []

        percentage = account.session_percent
        previous = account.last_notified_threshold
        crossed, new_threshold = step_thresholds(percentage, previous)

        for threshold in crossed:
            logger.info("Sending notification for account '%s' at %d%%", account.name, threshold)
            self.notifier(alert_title(account.name), alert_message(percentage))

        if new_threshold != previous:
            account.last_notified_threshold = new_threshold
            self.store.save_thresholds()

        return crossed

    def send_test_notification(self) -> bool:
        logger.info("Sending test notification")
        return self.notifier(
            "Claude Usage Alert",
            "Test notification - You've reached 75% of your 5-hour session limit",
        )
