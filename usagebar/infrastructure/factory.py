"""Service factory for dependency injection."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..constants import PREFERENCES_PATH
from ..data.preferences import PreferencesStore
from ..services.monitor import UsageMonitor
from .api import ClaudeWebAPI
from .notify import send_notification


class ServiceFactory:
    """Factory for creating service instances with dependencies."""

    def __init__(self, preferences_path: Path = PREFERENCES_PATH, api=ClaudeWebAPI, notifier=send_notification):
        self.preferences_path = preferences_path
        self.api = api
        self.notifier = notifier
        self._preferences: Optional[PreferencesStore] = None
        self._monitor: Optional[UsageMonitor] = None

    def get_preferences(self) -> PreferencesStore:
        """Get or create PreferencesStore instance."""
        if self._preferences is None:
            self._preferences = PreferencesStore(self.preferences_path)
        return self._preferences

    def get_monitor(self) -> UsageMonitor:
        """Get or create the UsageMonitor (runs the legacy migration on first access)."""
        if self._monitor is None:
            self._monitor = UsageMonitor(self.get_preferences(), api=self.api, notifier=self.notifier)
        return self._monitor
