"""Usage reporting commands."""

from __future__ import annotations

import json
from typing import Optional

import click
from rich.console import Group
from rich.live import Live

from ...constants import POLL_INTERVAL_SECONDS, console
from ...infrastructure.factory import ServiceFactory
from ...infrastructure.locking import acquire_lock
from ..renderers import account_to_json, render_status_line, render_usage_table


def _render(monitor, show_remaining: bool) -> Group:
    footer = "[dim]Updating...[/dim]" if monitor.is_loading else ""
    if monitor.last_updated and not monitor.is_loading:
        footer = f"[dim]Updated {monitor.last_updated.astimezone().strftime('%H:%M:%S')}[/dim]"
    return Group(
        render_usage_table(monitor.accounts, show_remaining=show_remaining),
        render_status_line(monitor.status),
        footer,
    )


@click.command()
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
@click.option('--remaining/--clock', 'show_remaining', default=True, help='Show reset times as countdown or wall clock')
def usage(output_json: bool, show_remaining: bool):
    """Fetch and show usage for every linked account."""
    acquire_lock()
    monitor = ServiceFactory().get_monitor()

    if not monitor.accounts:
        console.print("[yellow]No accounts found. Add one with 'usagebar add'[/yellow]")
        return

    with console.status('[bold green]Fetching usage...'):
        monitor.fetch_all()

    if output_json:
        result = {
            'percentage': monitor.status.percentage,
            'accounts': [account_to_json(acc) for acc in monitor.accounts],
        }
        print(json.dumps(result, indent=2))
        return

    console.print(render_usage_table(monitor.accounts, show_remaining=show_remaining))
    console.print(render_status_line(monitor.status))


@click.command()
@click.option('--interval', '-i', type=click.IntRange(min=10), default=POLL_INTERVAL_SECONDS, show_default=True,
              help='Seconds between polls')
@click.option('--rounds', type=click.IntRange(min=1), default=None, help='Stop after this many polls')
@click.option('--remaining/--clock', 'show_remaining', default=True, help='Show reset times as countdown or wall clock')
def watch(interval: int, rounds: Optional[int], show_remaining: bool):
    """Poll usage periodically and keep a live table on screen."""
    monitor = ServiceFactory().get_monitor()

    if not monitor.accounts:
        console.print("[yellow]No accounts found. Add one with 'usagebar add'[/yellow]")
        return

    try:
        with Live(_render(monitor, show_remaining), console=console, refresh_per_second=4) as live:
            monitor.subscribe(lambda _snapshot: live.update(_render(monitor, show_remaining)))
            monitor.run(interval=interval, rounds=rounds)
            live.update(_render(monitor, show_remaining))
    except KeyboardInterrupt:
        console.print('\n[yellow]Stopped watching[/yellow]')
