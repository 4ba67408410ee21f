"""Pure helpers for the cookie string used as the only credential."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from ..constants import ORG_COOKIE_KEY, SESSION_COOKIE_KEY
from .errors import InvalidCredentials


def parse_cookie(cookie: str) -> Dict[str, str]:
   """Split a ``k=v; k2=v2`` blob into a dict (first occurrence wins)."""
   parts: Dict[str, str] = {}
   for part in cookie.split(";"):
      trimmed = part.strip()
      if "=" not in trimmed:
         continue
      key, value = trimmed.split("=", 1)
      parts.setdefault(key.strip(), value.strip())
   return parts


def org_id_from_cookie(cookie: str) -> Optional[str]:
   """Return the last active organization id carried in the cookie, if any."""
   for part in cookie.split(";"):
      trimmed = part.strip()
      prefix = f"{ORG_COOKIE_KEY}="
      if trimmed.startswith(prefix):
         org_id = trimmed[len(prefix):].strip()
         return org_id or None
   return None


def validate_new_cookie(cookie: str, existing: Iterable[str] = ()) -> str:
   """
   Check a cookie before linking it to a new account.

   Raises:
      InvalidCredentials: If the cookie is empty, already linked, or carries
         neither a session key nor an organization id.
   """
   cookie = cookie.strip()
   if not cookie:
      raise InvalidCredentials("Cookie is empty")
   if cookie in set(existing):
      raise InvalidCredentials("This cookie is already added to another account")
   parts = parse_cookie(cookie)
   if SESSION_COOKIE_KEY not in parts and ORG_COOKIE_KEY not in parts:
      raise InvalidCredentials(
         f"Cookie doesn't appear to be valid (missing {SESSION_COOKIE_KEY} or {ORG_COOKIE_KEY})"
      )
   return cookie
