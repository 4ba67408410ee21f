"""Domain-specific exceptions for usagebar.

Fetch-pipeline failures never raise across account boundaries; they are
stored on the account as short strings. These exceptions are only raised at
the command-line boundary.
"""

from __future__ import annotations


class UsageBarError(Exception):
   """Base exception for all usagebar domain errors."""
   pass


class AccountNotFound(UsageBarError):
   """Account identifier does not match any linked account."""
   pass


class AccountLimitReached(UsageBarError):
   """The maximum number of linked accounts is already configured."""
   pass


class InvalidCredentials(UsageBarError):
   """Cookie string is malformed or already linked to another account."""
   pass
