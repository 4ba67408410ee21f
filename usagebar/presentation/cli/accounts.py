"""Account management commands."""

from __future__ import annotations

import json
from typing import Optional

import click
from rich.markup import escape

from ...constants import MAX_ACCOUNTS, console
from ...core.errors import AccountLimitReached, AccountNotFound, InvalidCredentials
from ...core.models import is_hex_color
from ...infrastructure.factory import ServiceFactory
from ...infrastructure.locking import acquire_lock
from ..renderers import account_to_json, render_account_panel, render_accounts_table


def _validate_color(ctx, param, value: Optional[str]) -> Optional[str]:
   if value is None or value == "" or is_hex_color(value):
      return value
   raise click.BadParameter("expected a hex colour such as #FF5733")


def _read_cookie(cookie: Optional[str], cookie_file: Optional[str]) -> Optional[str]:
   if cookie_file:
      with open(cookie_file, "r", encoding="utf-8") as handle:
         return handle.read().strip()
   return cookie


@click.command()
@click.option("--name", "-n", help="Label for the account (default: 'Account N')")
@click.option("--cookie", "-c", help="Cookie string copied from claude.ai")
@click.option("--cookie-file", "-f", type=click.Path(exists=True, dir_okay=False), help="File containing the cookie")
def add(name: Optional[str], cookie: Optional[str], cookie_file: Optional[str]):
   """Link a new account and fetch its usage once."""
   cookie = _read_cookie(cookie, cookie_file)
   if not cookie:
      cookie = click.prompt("Cookie", hide_input=True)

   acquire_lock()
   monitor = ServiceFactory().get_monitor()

   try:
      with console.status("[bold green]Fetching usage..."):
         account = monitor.add_account(name, cookie)
   except (AccountLimitReached, InvalidCredentials) as exc:
      console.print(f"[red]Error: {exc}[/red]")
      raise SystemExit(1)

   console.print(render_account_panel(account, title="Account Added"))


@click.command(name="ls")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def list_accounts_cmd(output_json: bool):
   """List linked accounts."""
   monitor = ServiceFactory().get_monitor()
   accounts = monitor.accounts

   if output_json:
      print(json.dumps([account_to_json(acc, include_usage=False) for acc in accounts], indent=2))
      return

   if not accounts:
      console.print("[yellow]No accounts found. Add one with 'usagebar add'[/yellow]")
      return

   console.print(render_accounts_table(accounts))
   console.print(f"[dim]{len(accounts)}/{MAX_ACCOUNTS} accounts linked[/dim]")


@click.command()
@click.argument("identifier")
@click.option("--name", "-n", help="New label")
@click.option("--cookie", "-c", help="Replacement cookie string")
@click.option("--cookie-file", "-f", type=click.Path(exists=True, dir_okay=False), help="File containing the cookie")
@click.option("--color", callback=_validate_color, help="Display colour as hex, e.g. #FF5733 (empty string clears)")
def edit(
   identifier: str,
   name: Optional[str],
   cookie: Optional[str],
   cookie_file: Optional[str],
   color: Optional[str],
):
   """Rename an account or replace its cookie (by #, id or name)."""
   cookie = _read_cookie(cookie, cookie_file)

   acquire_lock()
   monitor = ServiceFactory().get_monitor()

   try:
      account = monitor.update_account(identifier, name=name, cookie=cookie, color_hex=color)
   except AccountNotFound as exc:
      console.print(f"[red]Error: {exc}[/red]")
      raise SystemExit(1)

   if cookie and not account.has_fetched_data:
      with console.status("[bold green]Fetching usage..."):
         monitor.fetch_one(account.id)

   console.print(render_account_panel(account, title="Account Updated"))


@click.command(name="rm")
@click.argument("identifier")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def remove(identifier: str, yes: bool):
   """Unlink an account (by #, id or name)."""
   acquire_lock()
   monitor = ServiceFactory().get_monitor()

   try:
      account = monitor.resolve(identifier)
   except AccountNotFound as exc:
      console.print(f"[red]Error: {exc}[/red]")
      raise SystemExit(1)

   if not yes:
      click.confirm(f"Remove account '{account.name}'?", abort=True)

   monitor.remove_account(account.id)
   console.print(f"[green]✓[/green] Removed account [bold]{escape(account.name)}[/bold]")


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def reset(yes: bool):
   """Forget every linked account."""
   if not yes:
      click.confirm("Remove all accounts and cookies?", abort=True)

   acquire_lock()
   monitor = ServiceFactory().get_monitor()
   monitor.clear_all()
   console.print("[green]✓[/green] All accounts cleared")
