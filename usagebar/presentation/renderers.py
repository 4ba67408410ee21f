"""Rich formatting helpers for the usagebar presentation layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from ..core.models import Account, StatusSnapshot, is_hex_color
from ..utils import format_reset_time, mask_cookie


def format_usage_value(value: Optional[int]) -> str:
   """Format usage value with color-coded percentage."""
   if value is None:
      return "[dim]--[/dim]"
   if value >= 90:
      return f"[red]{value}%[/red]"
   if value >= 70:
      return f"[yellow]{value}%[/yellow]"
   return f"[green]{value}%[/green]"


def _percent(ratio: float) -> int:
   return int(round(ratio * 100))


def _name_cell(account: Account) -> Text:
   cell = Text()
   if is_hex_color(account.color_hex):
      cell.append("● ", style=Style(color=account.color_hex))
   cell.append(account.name)
   return cell


def render_accounts_table(accounts: List[Account]) -> Table:
   """Render linked accounts (no usage) as a Rich table."""
   table = Table(title="Linked Accounts", box=box.ROUNDED)
   table.add_column("#", style="cyan", justify="center")
   table.add_column("Name", style="magenta")
   table.add_column("ID", style="dim")
   table.add_column("Cookie", style="green")
   table.add_column("Notified", justify="right")

   for position, acc in enumerate(accounts, start=1):
      table.add_row(
         str(position),
         _name_cell(acc),
         acc.id[:8],
         mask_cookie(acc.credential) or "[red]not set[/red]",
         f"{acc.last_notified_threshold}%" if acc.last_notified_threshold else "[dim]--[/dim]",
      )

   return table


def render_usage_table(accounts: List[Account], show_remaining: bool = True) -> Table:
   """Render per-account usage for the session, weekly and secondary windows."""
   table = Table(title="Usage Across Accounts", box=box.ROUNDED)
   table.add_column("#", style="cyan", justify="center")
   table.add_column("Name", style="magenta")
   table.add_column("Session", justify="right")
   table.add_column("Resets", justify="right", no_wrap=True)
   table.add_column("Weekly", justify="right")
   table.add_column("Resets", justify="right", no_wrap=True)
   table.add_column("Weekly (Sonnet)", justify="right")

   for position, acc in enumerate(accounts, start=1):
      if acc.error_message and not acc.has_fetched_data:
         error = f"[red]{acc.error_message}[/red]"
         table.add_row(str(position), _name_cell(acc), error, "", "", "", "")
         continue
      if not acc.has_fetched_data:
         waiting = "[dim]loading...[/dim]" if acc.is_loading else "[dim]--[/dim]"
         table.add_row(str(position), _name_cell(acc), waiting, "", "", "", "")
         continue

      secondary = (
         format_usage_value(_percent(acc.secondary_percentage)) if acc.has_secondary_metric else "[dim]--[/dim]"
      )
      name = _name_cell(acc)
      if acc.error_message:
         name.append(f" ({acc.error_message})", style="red")

      table.add_row(
         str(position),
         name,
         format_usage_value(_percent(acc.session_percentage)),
         format_reset_time(acc.session_resets_at, show_remaining=show_remaining),
         format_usage_value(_percent(acc.weekly_percentage)),
         format_reset_time(acc.weekly_resets_at, show_remaining=show_remaining, include_date=True),
         secondary,
      )

   return table


def render_status_line(status: StatusSnapshot) -> str:
   """One-line replacement for the menu bar icon."""
   if not status.has_data:
      return "[dim]Session: 0% (no data)[/dim]"
   return f"[bold]Session (max):[/bold] {format_usage_value(status.percentage)}"


def render_account_panel(account: Account, title: str) -> Panel:
   lines = [
      f"Name: [bold]{escape(account.name)}[/bold]",
      f"ID: {account.id}",
      f"Cookie: {mask_cookie(account.credential) or '[red]not set[/red]'}",
   ]
   if account.has_fetched_data:
      lines.append(f"Session: {format_usage_value(_percent(account.session_percentage))}")
      lines.append(f"Weekly: {format_usage_value(_percent(account.weekly_percentage))}")
   elif account.error_message:
      lines.append(f"[red]{account.error_message}[/red]")
   return Panel("\n".join(lines), title=title, border_style="green")


def account_to_json(account: Account, include_usage: bool = True) -> Dict[str, Any]:
   """Plain-JSON view of an account for --json output (cookie omitted)."""
   data: Dict[str, Any] = {
      "id": account.id,
      "name": account.name,
      "configured": account.is_configured,
      "last_notified_threshold": account.last_notified_threshold,
      "color_hex": account.color_hex,
   }
   if not include_usage:
      return data

   def stamp(value):
      return value.isoformat() if value else None

   data.update(
      {
         "has_fetched_data": account.has_fetched_data,
         "error": account.error_message,
         "session": {
            "utilization": account.session_usage,
            "limit": account.session_limit,
            "resets_at": stamp(account.session_resets_at),
         },
         "weekly": {
            "utilization": account.weekly_usage,
            "limit": account.weekly_limit,
            "resets_at": stamp(account.weekly_resets_at),
         },
         "secondary": (
            {
               "utilization": account.secondary_usage,
               "limit": account.secondary_limit,
               "resets_at": stamp(account.secondary_resets_at),
            }
            if account.has_secondary_metric
            else None
         ),
         "last_updated": stamp(account.last_updated),
      }
   )
   return data
