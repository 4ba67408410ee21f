"""Shared console instance for usagebar output.

This module provides a single Rich Console instance configured to write to stderr.
Using stderr keeps ``--json`` output on stdout clean for scripting.
"""

from rich.console import Console

console = Console(stderr=True)
