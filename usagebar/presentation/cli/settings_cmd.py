"""Preference commands."""

from __future__ import annotations

from typing import Optional

import click

from ...constants import console
from ...infrastructure.factory import ServiceFactory
from ...infrastructure.locking import acquire_lock


def _on_off(value: bool) -> str:
    return '[green]on[/green]' if value else '[red]off[/red]'


@click.command()
@click.option('--notifications/--no-notifications', default=None, help='Enable or disable threshold alerts')
@click.option('--open-at-login/--no-open-at-login', default=None, help='Remember whether to start at login')
def settings(notifications: Optional[bool], open_at_login: Optional[bool]):
    """Show or change preferences."""
    factory = ServiceFactory()

    if notifications is not None or open_at_login is not None:
        acquire_lock()

    monitor = factory.get_monitor()
    prefs = monitor.settings

    if notifications is not None:
        prefs.notifications_enabled = notifications
    if open_at_login is not None:
        prefs.open_at_login = open_at_login

    console.print(f'Notifications: {_on_off(prefs.notifications_enabled)}')
    console.print(f'Open at login: {_on_off(prefs.open_at_login)}')
    console.print(f'[dim]Preferences file: {factory.preferences_path}[/dim]')


@click.command(name='test-notify')
def test_notify():
    """Send a test desktop notification."""
    monitor = ServiceFactory().get_monitor()
    if monitor.notifications.send_test_notification():
        console.print('[green]✓[/green] Test notification sent')
    else:
        console.print('[red]Could not send notification (see --verbose output)[/red]')
        raise SystemExit(1)
